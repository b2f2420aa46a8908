"""Application entry point for LessonQt."""

from __future__ import annotations

from pathlib import Path
import sys

from PySide6.QtWidgets import QApplication

from lesson_app.constants.network_constants import AUDIENCE_PATH, DEFAULT_HOST, DEFAULT_PORT
from lesson_app.core.broadcast_bus import BroadcastBus
from lesson_app.core.lesson_loader import ImportedLesson, LessonImportError, load_lesson_from_file
from lesson_app.core.models import Slide
from lesson_app.core.services.display_placement import DisplayPlacementService
from lesson_app.core.services.presentation_controller import PresentationController
from lesson_app.core.sync_settings import DEFAULT_SETTINGS
from lesson_app.server.relay_server import start_relay_server
from lesson_app.ui.audience_window import AudienceWindow
from lesson_app.ui.dialog_helpers import confirm_placement_permission, show_error
from lesson_app.ui.presenter_window import PresenterWindow
from lesson_app.ui.qt_display_host import QtDisplayHost
from lesson_app.ui.qt_scheduler import QtScheduler
from lesson_app.utils.logging_config import configure_logging

DEFAULT_LESSON_PATH = Path("lesson.json")

_WELCOME_SLIDE = Slide(
    id="welcome",
    title="Welcome",
    content=("Pass a lesson file on the command line", "or place lesson.json next to the app"),
)


def _load_lesson(path: Path) -> ImportedLesson | None:
    if not path.exists():
        return None
    return load_lesson_from_file(path)


def main() -> None:
    """Initialize logging, start the relay, and launch the Qt UI."""
    logger = configure_logging()
    logger.info("Starting LessonQt…")

    app = QApplication(sys.argv)
    scheduler = QtScheduler()
    settings = DEFAULT_SETTINGS
    bus = BroadcastBus(dispatcher=scheduler.call_soon)

    start_relay_server(bus, host=DEFAULT_HOST, port=DEFAULT_PORT, settings=settings)
    audience_url = f"http://{DEFAULT_HOST}:{DEFAULT_PORT}{AUDIENCE_PATH}"
    logger.info("Audience page available at %s", audience_url)

    lesson_path = Path(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_LESSON_PATH
    try:
        loaded = _load_lesson(lesson_path)
    except (OSError, LessonImportError) as exc:
        logger.error("Could not load lesson %s: %s", lesson_path, exc)
        show_error(None, "Lesson import failed", str(exc))
        loaded = None

    if loaded is None:
        logger.info("No lesson loaded; showing the welcome slide")
        slides, students, questions, title = [_WELCOME_SLIDE], [], [], ""
    else:
        logger.info("Loaded %d slide(s) from %s", len(loaded.slides), loaded.source_path)
        slides, students, questions, title = loaded.slides, loaded.students, loaded.questions, loaded.title

    controller = PresentationController(bus, scheduler, slides, students, settings=settings)

    host = QtDisplayHost(
        window_factory=lambda: AudienceWindow(bus, scheduler, settings),
        ask_permission=lambda: confirm_placement_permission(None),
    )
    placement = DisplayPlacementService(host)
    placement.initialize()
    placement.start_polling(scheduler, settings.display_poll_interval_seconds)

    window = PresenterWindow(
        controller=controller,
        placement=placement,
        display_host=host,
        audience_url=audience_url,
        questions=questions,
        lesson_title=title,
    )
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
