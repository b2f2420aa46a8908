"""Component for running the quick-quiz mini-game on the audience window."""

from __future__ import annotations

from typing import Sequence

from PySide6.QtWidgets import (
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QWidget,
)

from lesson_app.constants.ui_constants import (
    BUTTON_END_GAME,
    BUTTON_NEXT_QUESTION,
    BUTTON_REVEAL_ANSWER,
    BUTTON_START_QUIZ,
)
from lesson_app.core.models import GameMode, GameState, QuizQuestion
from lesson_app.core.services.presentation_controller import PresentationController


class GamePanel(QGroupBox):
    """Start, step through and close a quiz mirrored to the audience."""

    def __init__(
        self,
        controller: PresentationController,
        questions: Sequence[QuizQuestion] = (),
        parent: QWidget | None = None,
    ) -> None:
        super().__init__("Quick Quiz", parent)
        self.controller = controller
        self._questions = tuple(questions)
        self._build_ui()
        self._update_buttons()

    def _build_ui(self) -> None:
        layout = QHBoxLayout()
        self.setLayout(layout)

        self.start_button = QPushButton(BUTTON_START_QUIZ, self)
        self.start_button.clicked.connect(self._handle_start)
        layout.addWidget(self.start_button)

        self.reveal_button = QPushButton(BUTTON_REVEAL_ANSWER, self)
        self.reveal_button.clicked.connect(self._handle_reveal)
        layout.addWidget(self.reveal_button)

        self.next_button = QPushButton(BUTTON_NEXT_QUESTION, self)
        self.next_button.clicked.connect(self._handle_next)
        layout.addWidget(self.next_button)

        self.end_button = QPushButton(BUTTON_END_GAME, self)
        self.end_button.clicked.connect(self._handle_end)
        layout.addWidget(self.end_button)

        layout.addStretch()
        self.status_label = QLabel("", self)
        layout.addWidget(self.status_label)

    def _handle_start(self) -> None:
        if not self._questions:
            return
        self.controller.open_game(GameState(mode=GameMode.PLAY, questions=self._questions))
        self._update_buttons()

    def _handle_reveal(self) -> None:
        if self.controller.game is None:
            return
        self.controller.update_game(is_answer_revealed=True)
        self._update_buttons()

    def _handle_next(self) -> None:
        game = self.controller.game
        if game is None:
            return
        next_index = game.current_question_index + 1
        if next_index >= len(game.questions):
            self.controller.update_game(mode=GameMode.SUMMARY, is_answer_revealed=False)
        else:
            self.controller.update_game(current_question_index=next_index, is_answer_revealed=False)
        self._update_buttons()

    def _handle_end(self) -> None:
        self.controller.close_game()
        self._update_buttons()

    def _update_buttons(self) -> None:
        game = self.controller.game
        playing = game is not None and game.mode is GameMode.PLAY
        self.start_button.setEnabled(game is None and bool(self._questions))
        self.reveal_button.setEnabled(playing and not game.is_answer_revealed)
        self.next_button.setEnabled(playing and game.is_answer_revealed)
        self.end_button.setEnabled(game is not None)
        if game is None:
            count = len(self._questions)
            self.status_label.setText(f"{count} question{'s' if count != 1 else ''} ready" if count else "No quiz in lesson")
        elif game.mode is GameMode.SUMMARY:
            self.status_label.setText("Quiz complete")
        else:
            self.status_label.setText(
                f"Question {game.current_question_index + 1} of {len(game.questions)}"
            )
