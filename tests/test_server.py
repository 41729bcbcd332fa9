"""Tests for the FastAPI web server.

Each test starts from POST /api/reset, which swaps in a fresh project on
the bundled catalog's default board (ESP32 DevKit).
"""

from __future__ import annotations

import threading
import unittest

from fastapi.testclient import TestClient

from microiot.web import server
from microiot.web.server import app


class TestServer(unittest.TestCase):

    def setUp(self):
        self.client = TestClient(app)
        resp = self.client.post("/api/reset")
        self.assertEqual(resp.status_code, 200)

    def add(self, module_id):
        return self.client.post("/api/modules", json={"module_id": module_id})

    def test_catalog(self):
        data = self.client.get("/api/catalog").json()
        self.assertTrue(data["ok"])
        self.assertEqual(data["default_board"], "esp32-devkit-v1")
        self.assertIn("dht22", [m["id"] for m in data["modules"]])

    def test_fresh_project(self):
        data = self.client.get("/api/project").json()
        self.assertEqual(data["project"]["board_id"], "esp32-devkit-v1")
        self.assertEqual(data["project"]["modules"], [])

    def test_add_module(self):
        resp = self.add("dht22")
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["allocated_pins"], {"PIN_0": 32})
        modules = data["project"]["modules"]
        self.assertEqual(len(modules), 1)
        self.assertEqual(modules[0]["instance_id"], data["instance_id"])
        self.assertTrue(data["logs"][-1].startswith("Added dht22"))

    def test_add_unknown_module(self):
        resp = self.add("flux-capacitor")
        self.assertEqual(resp.status_code, 404)

    def test_add_exhausted(self):
        self.client.post("/api/board", json={"board_id": "esp8266-nodemcu"})
        self.assertEqual(self.add("ldr").status_code, 200)
        resp = self.add("ldr")
        self.assertEqual(resp.status_code, 409)
        self.assertIn("analog-in", resp.json()["detail"])
        modules = self.client.get("/api/project").json()["project"]["modules"]
        self.assertEqual(len(modules), 1)

    def test_remove_module(self):
        iid = self.add("relay-1ch").json()["instance_id"]
        resp = self.client.delete(f"/api/modules/{iid}")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["project"]["modules"], [])
        self.assertEqual(self.client.delete(f"/api/modules/{iid}").status_code, 404)

    def test_set_board_clears_modules(self):
        self.add("dht22")
        data = self.client.post("/api/board", json={"board_id": "esp8266-nodemcu"}).json()
        self.assertEqual(data["project"]["board_id"], "esp8266-nodemcu")
        self.assertEqual(data["project"]["modules"], [])

    def test_network_update(self):
        resp = self.client.post("/api/network", json={"broker": "10.1.1.1", "port": 8883})
        net = resp.json()["project"]["network"]
        self.assertEqual(net["broker"], "10.1.1.1")
        self.assertEqual(net["port"], 8883)

    def test_network_rejects_bad_port(self):
        resp = self.client.post("/api/network", json={"port": 70000})
        self.assertEqual(resp.status_code, 422)

    def test_identity_data(self):
        resp = self.client.post("/api/identity", json={"data": {"role": 5}})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["project"]["identity_data"]["role"], 5)

    def test_identity_out_of_range(self):
        resp = self.client.post("/api/identity", json={"data": {"sku": 4096}})
        self.assertEqual(resp.status_code, 400)
        data = self.client.get("/api/project").json()
        self.assertEqual(data["project"]["identity_data"]["sku"], 1)

    def test_identity_unknown_field(self):
        resp = self.client.post("/api/identity", json={"data": {"colour": 1}})
        self.assertEqual(resp.status_code, 400)

    def test_pins(self):
        self.add("bme280")
        self.add("ssd1306-i2c")
        data = self.client.get("/api/pins").json()
        pins = {p["gpio"]: p for p in data["pins"]}
        self.assertEqual(len(pins[21]["users"]), 2)
        self.assertTrue(pins[34]["restricted"])
        self.assertEqual(pins[32]["users"], [])

    def test_generate(self):
        self.client.post("/api/network", json={"device_id": "lab_node"})
        self.client.post("/api/identity", json={"token": "signed.abc"})
        self.add("dht22")
        self.add("relay-1ch")
        data = self.client.post("/api/generate").json()
        self.assertEqual(data["filename"], "micro_iot_lab_node.ino")
        self.assertIn("DHT dht_", data["source"])
        self.assertIn('const char* device_identity = "signed.abc";', data["source"])
        lib_ids = [lib["id"] for lib in data["libraries"]]
        self.assertEqual(lib_ids[:2], ["pubsubclient", "arduinojson"])
        self.assertIn("dht", lib_ids)


class TestStoreCreation(unittest.TestCase):

    def test_concurrent_first_access_builds_one_store(self):
        server._store = None
        barrier = threading.Barrier(8)
        stores = []

        def hit():
            barrier.wait()
            stores.append(server.get_store())

        threads = [threading.Thread(target=hit) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(len({id(s) for s in stores}), 1)
        self.assertIs(stores[0], server._store)

    def test_mutation_after_lazy_creation(self):
        server._store = None
        client = TestClient(app)
        self.assertEqual(client.post("/api/modules", json={"module_id": "dht22"}).status_code, 200)
        self.assertEqual(len(server.get_store().state.modules), 1)


if __name__ == "__main__":
    unittest.main()
