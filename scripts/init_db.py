import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from blog_backend.config import load_config
from blog_backend.db import init_db


def main() -> None:
    cfg = load_config()
    init_db(cfg.DB_PATH)
    print(f"DB initialized: {cfg.DB_PATH}")


if __name__ == "__main__":
    main()
