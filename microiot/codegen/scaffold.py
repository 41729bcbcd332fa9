"""Fixed MQTT scaffold of every generated sketch.

Topic layout (``<root>`` is ``FirmwareSettings.topic_root``):

  <root>/<device>/tele/<key>       telemetry, {"<key>": value, "unit": "raw"}
  <root>/<device>/cmnd/<module>    inbound commands ("ON" / "OFF" / value)
  <root>/<device>/stat/<module>    command acknowledgements
  <root>/<device>/status           "online" (retained) / "offline" (LWT)
  <root>/discovery/<device>        discovery payload
  <root>/broadcast/discover        "SCAN" requests a discovery payload
"""

from __future__ import annotations

from microiot.config import FirmwareSettings


def c_string(value: str) -> str:
    """Quote ``value`` as a C string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def network_includes(mcu: str) -> list[str]:
    if mcu == "esp32":
        return ["#include <WiFi.h>", "#include <ESPmDNS.h>"]
    return ["#include <ESP8266WiFi.h>", "#include <ESP8266mDNS.h>"]


def core_includes() -> list[str]:
    return [
        "#include <PubSubClient.h>",
        "#include <ArduinoJson.h>",
        "#include <ArduinoOTA.h>",
    ]


def command_branch(
    module_id: str,
    alias: str,
    body: list[str],
    settings: FirmwareSettings,
) -> str:
    """One ``if (mod == ...)`` block inside the command dispatcher."""
    root = settings.topic_root
    lines = [f'    if (mod == {c_string(module_id)} || mod == {c_string(alias)}) {{']
    lines.extend(f"      {b}" for b in body)
    lines.append(
        f'      client.publish((String("{root}/") + device_id + "/stat/" + mod).c_str(), msg.c_str());'
    )
    lines.append("    }")
    return "\n".join(lines)


def helper_functions(
    board_id: str,
    discovery_modules: list[str],
    command_branches: list[str],
    settings: FirmwareSettings,
) -> str:
    """sendTelemetry, publishDiscovery, callback, setupOTA and reconnect."""
    root = settings.topic_root
    mods = "\n".join(f"  mods.add({c_string(m)});" for m in discovery_modules)
    commands = "\n".join(command_branches)
    return f"""\
void sendTelemetry(String key, float value) {{
  JsonDocument doc;
  doc[key] = value;
  doc["unit"] = "raw";
  char buffer[256];
  serializeJson(doc, buffer);
  String topic = String("{root}/") + device_id + "/tele/" + key;
  client.publish(topic.c_str(), buffer);
}}

void publishDiscovery() {{
  JsonDocument doc;
  doc["sig"] = {c_string(settings.protocol_signature)};
  doc["device_id"] = device_id;
  doc["uid"] = device_identity;
  doc["board"] = {c_string(board_id)};
  doc["ver"] = {c_string(settings.firmware_version)};

  JsonArray mods = doc["modules"].to<JsonArray>();
{mods}

  char buffer[1024];
  serializeJson(doc, buffer);
  String topic = String("{root}/discovery/") + device_id;
  client.publish(topic.c_str(), buffer);
}}

void callback(char* topic, byte* payload, unsigned int length) {{
  String msg = "";
  for (unsigned int i = 0; i < length; i++) msg += (char)payload[i];
  Serial.print("[MQTT] "); Serial.print(topic); Serial.print(": "); Serial.println(msg);

  String topicStr = String(topic);
  if (topicStr == "{root}/broadcast/discover" && msg == "SCAN") {{
    publishDiscovery();
  }}

  if (topicStr.startsWith(String("{root}/") + device_id + "/cmnd/")) {{
    String mod = topicStr.substring(topicStr.lastIndexOf('/') + 1);
{commands}
  }}
}}

void setupOTA() {{
  ArduinoOTA.setHostname(device_id);
  ArduinoOTA.onStart([]() {{ Serial.println("Start updating"); }});
  ArduinoOTA.onEnd([]() {{ Serial.println("\\nEnd"); }});
  ArduinoOTA.onProgress([](unsigned int progress, unsigned int total) {{
    Serial.printf("Progress: %u%%\\r", (progress / (total / 100)));
  }});
  ArduinoOTA.onError([](ota_error_t error) {{
    Serial.printf("Error[%u]: ", error);
  }});
  ArduinoOTA.begin();
}}

boolean reconnect() {{
  String statusTopic = String("{root}/") + device_id + "/status";
  if (client.connect(device_id, NULL, NULL, statusTopic.c_str(), 1, true, "offline")) {{
    Serial.println("MQTT Connected");
    client.publish(statusTopic.c_str(), "online", true);
    client.subscribe((String("{root}/") + device_id + "/cmnd/#").c_str());
    client.subscribe("{root}/broadcast/discover");
    publishDiscovery();
    return true;
  }}
  return false;
}}
"""


def setup_function(module_setups: list[str], settings: FirmwareSettings) -> list[str]:
    lines = [
        "void setup() {",
        f"  Serial.begin({settings.serial_baud});",
        "",
        f"  // Connect WiFi (Timeout {settings.wifi_retries * 500 // 1000}s)",
        "  WiFi.mode(WIFI_STA);",
        "  WiFi.begin(ssid, password);",
        "  int try_wifi = 0;",
        f'  while (WiFi.status() != WL_CONNECTED && try_wifi < {settings.wifi_retries}) '
        '{ delay(500); Serial.print("."); try_wifi++; }',
        '  if (WiFi.status() == WL_CONNECTED) Serial.println("\\nWiFi Connected");',
        '  else Serial.println("\\nWiFi Timeout");',
        "",
        "  setupOTA();",
        "  client.setServer(mqtt_server, mqtt_port);",
        "  client.setCallback(callback);",
        "",
    ]
    lines.extend(module_setups)
    lines.append("}")
    return lines


def loop_function(module_loops: list[str], settings: FirmwareSettings) -> list[str]:
    lines = [
        "unsigned long lastReconnect = 0;",
        "void loop() {",
        "  ArduinoOTA.handle();",
        "",
        "  if (!client.connected()) {",
        "    unsigned long now = millis();",
        f"    if (now - lastReconnect > {settings.reconnect_interval_ms}) {{",
        "      lastReconnect = now;",
        "      if (reconnect()) { lastReconnect = 0; }",
        "    }",
        "  } else {",
        "    client.loop();",
        "  }",
        "",
    ]
    lines.extend(module_loops)
    lines.append("}")
    return lines
