from __future__ import annotations

import pytest

from scripts.sign_link import main, resolve_expires
from selectel_storage.infra.storage.signing import generate_signed_link


def test_resolve_expires_prefers_absolute_value():
    assert resolve_expires(expires=1700000000, ttl=None) == 1700000000
    assert resolve_expires(expires=None, ttl=60, now=1000.5) == 1060


def test_main_prints_signed_link(capsys):
    main(["/c/o.txt", "--key", "k", "--expires", "1700000000"])

    out = capsys.readouterr().out.strip()
    assert out == generate_signed_link("/c/o.txt", 1700000000, "k")


def test_main_requires_expiry(capsys):
    with pytest.raises(SystemExit):
        main(["/c/o.txt", "--key", "k"])
