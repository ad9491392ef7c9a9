import logging
import sys
import time
from typing import Optional, Tuple

import httpx

from network_config import build_config

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S"
)


def probe(url: str, client: Optional[httpx.Client] = None) -> Tuple[bool, float, object]:
    """Post eth_chainId to url; returns (ok, seconds, chain id or error)."""
    owns_client = client is None
    if client is None:
        client = httpx.Client(timeout=5)
    try:
        t0 = time.time()
        resp = client.post(
            url,
            json={"jsonrpc": "2.0", "id": 1, "method": "eth_chainId", "params": []},
        )
        dt = time.time() - t0
        if resp.status_code != 200:
            return False, dt, resp.status_code
        payload = resp.json()
        if "error" in payload:
            return False, dt, payload["error"]
        return True, dt, int(payload["result"], 16)
    except httpx.HTTPError as e:
        return False, 0, str(e)
    except (ValueError, KeyError, TypeError) as e:
        # non-JSON body or a reply without result/error
        return False, time.time() - t0, f"bad response: {e!r}"
    finally:
        if owns_client:
            client.close()


def main() -> int:
    config = build_config()
    failed = 0
    print("Checking RPCs...")
    for name, profile in config.networks.items():
        url = profile.rpc_url()
        success, dt, res = probe(url)
        if success:
            print(f"PASS: {name} {url} chain_id={res} ({dt:.2f}s)")
        else:
            print(f"FAIL: {name} {url} ({res})")
            failed += 1
    if failed:
        print(f"{failed} RPC(s) failed!")
        return 1
    print(f"All {len(config.networks)} RPCs reachable.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
