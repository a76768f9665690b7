from pathlib import Path
import os
import sys


def app_root_dir() -> Path:
    if getattr(sys, "frozen", False):
        exe_dir = Path(sys.executable).resolve().parent
        return exe_dir.parent
    return Path(__file__).resolve().parent


def resolve_path(root_dir: Path, custom: str | None, default: Path) -> Path:
    if not custom:
        return default
    path = Path(custom).expanduser()
    if not path.is_absolute():
        path = (root_dir / path).resolve()
    return path


def env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


ROOT_DIR = app_root_dir()

DB_PATH = resolve_path(ROOT_DIR, os.getenv("APP_DB_PATH"), ROOT_DIR / "data" / "inventory.db")
DB_PATH.parent.mkdir(parents=True, exist_ok=True)

UPLOAD_DIR = resolve_path(ROOT_DIR, os.getenv("APP_UPLOAD_DIR"), ROOT_DIR / "uploads")
UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

TEMPLATE_DIR = ROOT_DIR / "templates"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# -----------------------
# Mail
# -----------------------
MAIL_ENABLED = env_flag("MAIL_ENABLED")
SMTP_SERVER = os.getenv("SMTP_SERVER", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USERNAME = os.getenv("SMTP_USERNAME", "")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
MAIL_FROM = os.getenv("MAIL_FROM", SMTP_USERNAME or "inventory@localhost")
MAIL_RETRY_ATTEMPTS = max(1, int(os.getenv("MAIL_RETRY_ATTEMPTS", "3")))
MAIL_RETRY_BACKOFF_SECONDS = float(os.getenv("MAIL_RETRY_BACKOFF_SECONDS", "1.0"))
