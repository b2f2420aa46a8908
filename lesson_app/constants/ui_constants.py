"""Qt UI constants used across widgets."""

PRESENTER_WINDOW_TITLE: str = "LessonQt Presenter"
AUDIENCE_WINDOW_TITLE: str = "LessonQt Audience"
DEFAULT_AUDIENCE_WIDTH: int = 1280
DEFAULT_AUDIENCE_HEIGHT: int = 720

BUTTON_PREVIOUS: str = "Previous"
BUTTON_NEXT: str = "Next"
BUTTON_CLOSE_AUDIENCE: str = "Close Audience"
BUTTON_ENABLE_PLACEMENT: str = "Enable auto-placement"
BUTTON_PERMISSION_HELP: str = "Learn how to reset"
BUTTON_SELECT_STUDENT: str = "Question for {name}"
BUTTON_SKIP_STUDENT: str = "Skip"
BUTTON_MARK_ASKED: str = "Mark Asked"
BUTTON_START_QUIZ: str = "Start Quick Quiz"
BUTTON_REVEAL_ANSWER: str = "Reveal Answer"
BUTTON_NEXT_QUESTION: str = "Next Question"
BUTTON_END_GAME: str = "End Game"

LAUNCH_LABEL_LOADING: str = "Checking displays..."
LAUNCH_LABEL_CONNECTED: str = "Audience Active"
LAUNCH_LABEL_EXTERNAL: str = "Launch → {label}"
LAUNCH_LABEL_DEFAULT: str = "Launch Audience View"

STATUS_CONNECTED: str = "Audience connected"
STATUS_DISCONNECTED: str = "Audience not connected"
WAITING_TITLE: str = "Waiting for Presentation"
WAITING_SUBTITLE: str = "Open the presenter view to begin"
NO_GRADED_STUDENTS: str = "Add grades to the roster to use targeted questioning."
ROTATION_PROGRESS_TEMPLATE: str = "{asked} of {total} students asked"

POPUP_BLOCKED_TITLE: str = "Audience window blocked"
POPUP_BLOCKED_MESSAGE: str = (
    "The audience window could not be opened.\n\n"
    "Open this URL on the projector:\n{url}\n\n"
    "The URL has been copied to the clipboard."
)

PERMISSION_RECOVERY_TITLE: str = "Reset Permission"
PERMISSION_RECOVERY_STEPS: tuple[str, ...] = (
    "Open Settings from the presenter toolbar",
    "Tick \"Allow automatic placement on a second display\"",
    "Press Apply",
    "Launch the audience view again",
)
PERMISSION_PROMPT_TITLE: str = "Allow auto-placement?"
PERMISSION_PROMPT_MESSAGE: str = (
    "LessonQt can open the audience window directly on your second display.\n\n"
    "Allow LessonQt to read your display layout?"
)
