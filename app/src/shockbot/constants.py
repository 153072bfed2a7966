from dotenv import load_dotenv
import os

load_dotenv()

SCRIPT_DIR = os.path.dirname(os.path.realpath(__file__))

# config.yaml next to the package unless overridden
CONFIG_PATH = os.environ.get("SHOCKBOT_CONFIG", os.path.join(SCRIPT_DIR, "config.yaml"))

LOG_FILE = os.environ.get("LOG_FILE", "output.log")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

HEARTBEAT_INTERVAL_SEC = int(os.environ.get("HEARTBEAT_INTERVAL_SEC", "30"))
COOLDOWN_EVICT_INTERVAL_SEC = int(os.environ.get("COOLDOWN_EVICT_INTERVAL_SEC", "300"))

# Gateway resumes re-deliver recent messages; remember ids this long
DEDUP_TTL_SEC = float(os.environ.get("DEDUP_TTL_SEC", "120"))
DEDUP_MAX_ENTRIES = int(os.environ.get("DEDUP_MAX_ENTRIES", "5000"))

PISHOCK_TIMEOUT_SEC = int(os.environ.get("PISHOCK_TIMEOUT_SEC", "10"))
PISHOCK_MAX_ATTEMPTS = int(os.environ.get("PISHOCK_MAX_ATTEMPTS", "3"))
