from app.main import app, start_worker
from app.deka import config
from app.deka.utils import setup_run_logger
import os

if __name__ == "__main__":
    # Importing app.main prepares the data directories. The query worker
    # and its browser session start here, before the first request. The
    # hosting environment may provide PORT; default to 8080 for local
    # development.
    setup_run_logger()
    start_worker(ready_timeout=config.NAV_TIMEOUT_SECONDS)
    port = int(os.environ.get("PORT", 8080))
    app.run(host="0.0.0.0", port=port)
