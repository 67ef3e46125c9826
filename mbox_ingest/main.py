from mbox_ingest.config.settings import Settings
from mbox_ingest.logging.logger import Log
from mbox_ingest.service import build_ingest_service
from mbox_ingest.sessions.sweeper import RetentionSweeper


def main() -> None:
    """Entry point: load settings -> build service -> run the retention sweep loop."""
    settings = Settings()
    Log.configure(settings.log_level)

    service = build_ingest_service(settings)
    try:
        sweeper = RetentionSweeper(service.store, settings)
        sweeper.run()
    finally:
        service.close()


if __name__ == "__main__":
    main()
