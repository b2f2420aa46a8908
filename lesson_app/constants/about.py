"""Static metadata describing LessonQt."""

APP_NAME = "LessonQt"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "LessonQt is a classroom presentation console built with Qt and FastAPI. "
    "Drive the lesson from the presenter window while the audience window on the "
    "projector mirrors slides, mini-games and cold-call banners."
)

HELP_TEXT = (
    "Use Next / Previous (or the arrow keys) to reveal bullets and move between slides.\n\n"
    "Launch Audience opens the mirrored view. When a second display is connected, "
    "enable auto-placement to open it directly on the projector.\n\n"
    "If the audience window cannot be opened, copy the audience URL and open it "
    "in any browser on the projector machine."
)
