import sys
import threading
import time
from pathlib import Path

import requests
import uvicorn

ROOT = Path(__file__).resolve().parent
PORT = 8090


def run_once(port: int = PORT) -> bool:
    """Serve the app on a real socket and poll until it answers or times out."""
    try:
        sys.path.insert(0, str(ROOT))
        from main import app

        config = uvicorn.Config(app, host="127.0.0.1", port=port, log_level="warning")
        server = uvicorn.Server(config)
        t = threading.Thread(target=server.run, daemon=True)
        t.start()

        url = f"http://127.0.0.1:{port}/health"
        deadline = time.time() + 12
        ok = False
        while time.time() < deadline:
            try:
                r = requests.get(url, timeout=1.5)
                if r.status_code == 200:
                    ok = True
                    break
            except requests.RequestException:
                pass
            time.sleep(0.3)
        print("shared_ledger: LIVE OK" if ok else "shared_ledger: LIVE FAIL (no response)")

        server.should_exit = True
        t.join(timeout=5)
        return ok
    except Exception as e:
        print(f"shared_ledger: EXCEPTION - {e}")
        return False


if __name__ == "__main__":
    if not run_once():
        raise SystemExit(1)
