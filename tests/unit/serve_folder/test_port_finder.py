from __future__ import annotations

import http.client

import pytest

from helpers.ports import occupy_port
from previewhost.core.exceptions import NoPortAvailableError, PreviewHostError
from previewhost.core.serve_folder import get_available_port, is_port_available


def test_returns_lowest_free_port(port_range) -> None:
    low, high = port_range
    assert get_available_port(low, high) == low


def test_skips_ports_taken_by_other_sockets(port_range) -> None:
    low, high = port_range
    with occupy_port(low):
        assert not is_port_available(low)
        assert get_available_port(low, high) == low + 1


def test_skips_excluded_ports_without_probing(port_range) -> None:
    low, high = port_range
    assert get_available_port(low, high, exclude={low, low + 1}) == low + 2


def test_single_port_range(port_range) -> None:
    low, _ = port_range
    assert get_available_port(low, low) == low


def test_exhausted_range_raises_no_port_available(port_range) -> None:
    low, _ = port_range
    with occupy_port(low), occupy_port(low + 1):
        with pytest.raises(NoPortAvailableError) as excinfo:
            get_available_port(low, low + 1)

    err = excinfo.value
    assert isinstance(err, PreviewHostError)
    assert err.context["min_port"] == low
    assert err.context["max_port"] == low + 1
    assert err.to_json_error()["code"] == "NoPortAvailableError"


@pytest.mark.parametrize("low,high", [(4000, 2929), (0, 10), (65000, 70000)])
def test_invalid_ranges_are_rejected(low: int, high: int) -> None:
    with pytest.raises(ValueError):
        get_available_port(low, high)


def test_port_closed_by_server_side_can_be_held_again(manager, site_root) -> None:
    port = manager.serve_folder(str(site_root), False, "w1").result(timeout=10).port
    conn = http.client.HTTPConnection("127.0.0.1", port, timeout=5)
    conn.request("GET", "/")
    conn.getresponse().read()

    # The server closes the keep-alive connection first, leaving its port in TIME_WAIT.
    manager.stop_all_servers()
    conn.close()

    assert is_port_available(port)
    with occupy_port(port) as sock:
        assert sock.getsockname()[1] == port
