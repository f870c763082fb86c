from __future__ import annotations

import argparse
import json
import time
import urllib.error
import urllib.request


def fetch(url: str, data: bytes | None = None) -> tuple[int, bytes]:
    headers = {"Content-Type": "application/json"} if data is not None else {}
    req = urllib.request.Request(url, data=data, headers=headers)
    with urllib.request.urlopen(req, timeout=10) as resp:
        return resp.status, resp.read()


def post_json(url: str, payload: dict[str, str] | None = None) -> dict[str, object]:
    body = json.dumps(payload or {}).encode("utf-8")
    _, raw = fetch(url, data=body)
    return json.loads(raw.decode("utf-8"))


def wait_for(url: str, timeout: int) -> bytes:
    deadline = time.time() + timeout
    last_error: Exception | None = None
    while time.time() < deadline:
        try:
            status, body = fetch(url)
            if status == 200:
                return body
        except (urllib.error.URLError, OSError) as exc:
            last_error = exc
        time.sleep(1)
    raise RuntimeError(f"Timed out waiting for {url}: {last_error}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Smoke test for a running draw server.")
    parser.add_argument("--server", default="http://localhost:8080")
    parser.add_argument("--timeout", type=int, default=60)
    args = parser.parse_args()

    base = args.server.rstrip("/")

    wait_for(f"{base}/health", args.timeout)
    pool = json.loads(wait_for(f"{base}/api/pool", args.timeout).decode("utf-8"))
    size = int(pool.get("size", 0))
    if size <= 0:
        raise RuntimeError("Pool is empty")

    link = post_json(f"{base}/api/links")
    token = str(link["token"])
    picks: list[str] = []
    for _ in range(size):
        outcome = post_json(f"{base}/api/draw", {"state": token})
        picked = outcome.get("picked")
        if not isinstance(picked, dict):
            raise RuntimeError(f"Draw from {token} returned no pick")
        picks.append(str(picked["label"]))
        token = str(outcome["link"]["token"])  # type: ignore[index]

    if len(set(picks)) != size:
        raise RuntimeError(f"Picks repeated an item: {picks}")
    final = post_json(f"{base}/api/draw", {"state": token})
    if final.get("exhausted") is not True:
        raise RuntimeError("Pool was not exhausted after drawing every item")

    print("Smoke test passed.")


if __name__ == "__main__":
    main()
