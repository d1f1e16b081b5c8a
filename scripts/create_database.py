import os
import subprocess

# ======================
# Global Config
# ======================

MYSQL_IMAGE = "mysql:oraclelinux9"
MYSQL_ROOT_PASSWORD = os.environ.get("MYSQL_PASSWORD", "1234")
MYSQL_PORT = int(os.environ.get("MYSQL_PORT", "33061"))

CONTAINER_NAME = "mysql-wikidb"
BASE_DATA_DIR = "./data"
INIT_DIR = "./scripts/db-init/wikidb"

# ======================
# Utils
# ======================

def run(cmd: list[str]):
    print(">>", " ".join(cmd))
    subprocess.run(cmd, check=True)


def remove_container_if_exists(name: str):
    subprocess.run(
        ["docker", "rm", "-f", name],
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )


# ======================
# Main Logic
# ======================

def start_mysql():
    data_dir = os.path.join(BASE_DATA_DIR, CONTAINER_NAME)
    os.makedirs(data_dir, exist_ok=True)

    if not os.path.isdir(INIT_DIR):
        raise RuntimeError(f"Init SQL directory not found: {INIT_DIR}")

    remove_container_if_exists(CONTAINER_NAME)

    run([
        "docker", "run", "-d",
        "--name", CONTAINER_NAME,
        "-e", f"MYSQL_ROOT_PASSWORD={MYSQL_ROOT_PASSWORD}",
        "-p", f"{MYSQL_PORT}:3306",
        "-v", f"{os.path.abspath(data_dir)}:/var/lib/mysql",
        "-v", f"{os.path.abspath(INIT_DIR)}:/docker-entrypoint-initdb.d",
        MYSQL_IMAGE
    ])

    print(f"{CONTAINER_NAME} started at localhost:{MYSQL_PORT}")


if __name__ == "__main__":
    start_mysql()
