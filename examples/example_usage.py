"""Example: use the service layer without Flask.

Prints the students whose checked-in flag disagrees with their latest log.
"""

import importlib

from config import get_settings_module

from src.checkin_tracker.checkin_tracker.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(
        db_config=settings.DB_CONFIG,
        store_backend=getattr(settings, "STORE_BACKEND", "mysql"),
    )
    for report in container.checkio_service.find_drift():
        print(f"{report.student_name}: flag={report.checked_in} latest={report.latest_action}")
    container.tasks.shutdown()


if __name__ == "__main__":
    main()
