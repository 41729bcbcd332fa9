"""Device identity — the data sent to the external identity issuer.

The issuer itself lives outside this package.  It is any callable that takes
an ``IdentityData`` record and returns an opaque signed string, raising
``IdentityError`` when it cannot.  The generated sketch embeds whatever it
returns, or the settings' sentinel when nothing was issued.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, asdict
from typing import Callable

from microiot.errors import IdentityError


log = logging.getLogger("microiot.identity")

FIELD_MAX = 2047    # every identity field is an 11-bit index


@dataclass(frozen=True)
class IdentityData:
    role: int = 0
    type: int = 1
    name: int = 1
    version: int = 1
    model: int = 1
    prod_date: int = 1
    act_date: int = 1
    expiry_date: int = 1
    sku: int = 1

    def to_dict(self) -> dict:
        return asdict(self)

    def validate(self) -> list[str]:
        """Return error messages for out-of-range fields (empty = valid)."""
        errors = []
        for key, value in asdict(self).items():
            if not 0 <= value <= FIELD_MAX:
                errors.append(f"{key}: {value} outside 0..{FIELD_MAX}")
        return errors


IdentityIssuer = Callable[[IdentityData], str]


def request_identity(issuer: IdentityIssuer | None, data: IdentityData) -> str | None:
    """Ask ``issuer`` for a token once.  Returns None on any failure."""
    if issuer is None:
        return None
    try:
        token = issuer(data)
    except IdentityError as exc:
        log.warning("Identity issuance failed: %s", exc)
        return None
    except Exception as exc:
        log.warning("Identity issuer error (%s): %s", type(exc).__name__, exc)
        return None
    if not token:
        log.warning("Identity issuer returned an empty token")
        return None
    log.info("Identity issued: %s...", token[:20])
    return token
