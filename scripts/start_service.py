import subprocess
import os
import sys
import threading
import time
import signal

import httpx

# =========================
# Environment
# =========================
env = os.environ.copy()
env["PYTHONUNBUFFERED"] = "1"
env.setdefault("CHANNEL_MODE", "http")

# =========================
# Colors
# =========================
COLORS = {
    "wikidb": "\033[94m",      # blue
    "web": "\033[92m",         # green
    "reset": "\033[0m",
}

# =========================
# Services (started in this order)
# =========================
SERVICES = {
    "wikidb": {
        "app": "src.wikidb.service:app",
        "port": env.get("WIKIDB_PORT", "8100"),
        "workers": "1",
        "health": "/health",
    },
    "web": {
        "app": "src.web.main:app",
        "port": env.get("WEB_PORT", "8080"),
        "workers": env.get("WEB_WORKERS", "2"),
        "health": "/",
    },
}

env.setdefault("WIKIDB_URL", f"http://127.0.0.1:{SERVICES['wikidb']['port']}")

BASE_CMD = [
    "uvicorn",
    "--host", "0.0.0.0",
    "--log-level", "info",
    # no reload: child processes would interleave the logs
]

HEALTH_TIMEOUT = 15


# =========================
# Start one service
# =========================
def start_service(name):
    cfg = SERVICES[name]
    color = COLORS.get(name, "")
    reset = COLORS["reset"]

    cmd = BASE_CMD + [
        cfg["app"],
        "--port", cfg["port"],
        "--workers", cfg["workers"],
    ]

    print(f"{color}[START] {name:<8} → {cfg['port']} x{cfg['workers']}{reset}")

    proc = subprocess.Popen(
        cmd,
        cwd=os.getcwd(),
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        bufsize=1,
        env=env,
    )
    return proc, name


def wait_health(name, timeout=HEALTH_TIMEOUT):
    cfg = SERVICES[name]
    url = f"http://127.0.0.1:{cfg['port']}{cfg['health']}"
    deadline = time.time() + timeout
    while time.time() < deadline:
        try:
            if httpx.get(url, timeout=2.0).status_code == 200:
                return
        except httpx.HTTPError:
            pass
        time.sleep(0.2)
    raise RuntimeError(f"health check failed: {url}")


# =========================
# Log streaming
# =========================
def stream_logs(proc, name):
    color = COLORS.get(name, "")
    reset = COLORS["reset"]

    try:
        for line in proc.stdout:
            print(f"{color}[{name.upper():<6}] {line.rstrip()}{reset}")
    except Exception as e:
        print(f"[{name}] log stream error: {e}")


# =========================
# Start several services
# =========================
def start_many(names):
    procs = []

    try:
        for name in names:
            p, svc = start_service(name)
            procs.append((p, svc))

            t = threading.Thread(
                target=stream_logs,
                args=(p, svc),
                daemon=True,
            )
            t.start()

            # the web tier needs the wikidb consumers before taking traffic
            wait_health(svc)

        print("\nAll services started. Ctrl+C to stop.\n")

        while True:
            time.sleep(1)

    except KeyboardInterrupt:
        print("\nStopping all services...")

    finally:
        for p, _ in reversed(procs):
            try:
                p.send_signal(signal.SIGTERM)
            except Exception:
                pass

        for p, _ in procs:
            try:
                p.wait(timeout=5)
            except Exception:
                p.kill()

        print("All services stopped.")


# =========================
# CLI
# =========================
if __name__ == "__main__":
    mode = sys.argv[1] if len(sys.argv) > 1 else "up"

    if mode == "up":
        start_many(SERVICES.keys())
    elif mode in SERVICES:
        start_many([mode])
    else:
        print("Usage:")
        print("  python scripts/start_service.py up")
        print("  python scripts/start_service.py wikidb|web")
