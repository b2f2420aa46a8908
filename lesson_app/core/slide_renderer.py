"""Markdown + LaTeX rendering of slides and games for the audience surfaces.

The Qt audience window renders whole documents through ``render_view``; the
browser relay only needs the per-bullet fragments from ``render_inline``, which
it attaches to outgoing frames so both surfaces show identical markup. MathJax
typesets formulas on the client in both cases.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from html import escape

from markdown_it import MarkdownIt

from lesson_app.constants.ui_constants import WAITING_SUBTITLE, WAITING_TITLE
from lesson_app.core.models import (
    AudienceView,
    BannerPhase,
    GameMode,
    GameState,
    NameBanner,
    PresentationSnapshot,
)

_MATHJAX_SCRIPT = (
    "https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-mml-chtml.js"
)


@dataclass(slots=True)
class SlideRenderer:
    """Converts slide content and game state into HTML fragments or documents."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html})
            .enable("table")
            .enable("strikethrough")
        )

    def render_inline(self, markdown_text: str) -> str:
        """Render one bullet or option without a wrapping paragraph."""
        return self._markdown.renderInline(markdown_text.strip())

    def render_fragment(self, markdown_text: str) -> str:
        sanitized = markdown_text.strip()
        if not sanitized:
            return ""
        return self._markdown.render(sanitized)

    def render_slide(self, snapshot: PresentationSnapshot) -> str:
        """Title, revealed bullets and image of the snapshot's current slide."""
        slide = snapshot.current_slide
        if slide is None:
            return self.render_waiting()

        parts = [f'<h1 class="slide-title">{escape(slide.title)}</h1>']
        if slide.image_url:
            parts.append(f'<img class="slide-image" src="{escape(slide.image_url, quote=True)}" alt="" />')
        visible = slide.content[: snapshot.visible_bullets]
        if visible:
            items = "".join(
                f'<li class="bullet">{self.render_inline(bullet)}</li>' for bullet in visible
            )
            parts.append(f'<ul class="bullets">{items}</ul>')
        if slide.has_question_flag:
            parts.append('<div class="question-flag">?</div>')
        layout = escape(slide.layout or "default", quote=True)
        return f'<section class="slide layout-{layout}">{"".join(parts)}</section>'

    def render_game(self, game: GameState) -> str:
        if game.mode is GameMode.LOADING:
            return '<section class="game"><h1>Get ready…</h1></section>'
        if game.mode is GameMode.SUMMARY:
            total = len(game.questions)
            return (
                '<section class="game"><h1>Quiz complete</h1>'
                f"<p>{total} question{'s' if total != 1 else ''} answered together.</p></section>"
            )

        question = game.current_question
        if question is None:
            return '<section class="game"><h1>No question</h1></section>'
        options = []
        for index, option in enumerate(question.options):
            letter = chr(ord("A") + index)
            css = "option"
            if game.is_answer_revealed and index == question.correct_option_index:
                css += " correct"
            options.append(
                f'<li class="{css}"><strong>{letter}.</strong> {self.render_inline(option)}</li>'
            )
        explanation = ""
        if game.is_answer_revealed and question.explanation:
            explanation = f'<div class="explanation">{self.render_fragment(question.explanation)}</div>'
        progress = f"{game.current_question_index + 1} / {len(game.questions)}"
        return (
            '<section class="game">'
            f'<p class="progress">{progress}</p>'
            f'<div class="question">{self.render_fragment(question.question)}</div>'
            f'<ol class="options">{"".join(options)}</ol>'
            f"{explanation}</section>"
        )

    def render_banner(self, banner: NameBanner) -> str:
        css = "banner exiting" if banner.phase is BannerPhase.EXITING else "banner"
        return f'<div class="{css}">{escape(banner.name)}</div>'

    @staticmethod
    def render_waiting() -> str:
        return (
            '<section class="waiting">'
            f"<h1>{WAITING_TITLE}</h1><p>{WAITING_SUBTITLE}</p></section>"
        )

    def render_view(self, view: AudienceView, title: str = "LessonQt") -> str:
        """Full document for one audience frame."""
        if view.in_game and view.game is not None:
            body = self.render_game(view.game)
        elif view.waiting or view.snapshot is None:
            body = self.render_waiting()
        else:
            body = self.render_slide(view.snapshot)
        if view.banner is not None:
            body += self.render_banner(view.banner)
        return self.wrap_with_mathjax(body, title=title)

    def wrap_with_mathjax(self, body_html: str, title: str = "LessonQt") -> str:
        """Wrap a fragment inside a minimal HTML document that loads MathJax."""

        return f"""<!doctype html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <title>{escape(title)}</title>
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <style>
      body {{ font-family: 'Segoe UI', system-ui, sans-serif; margin: 0; padding: 2rem 3rem; background: #0b1120; color: #f5f7ff; }}
      .slide-title {{ font-size: 2.6rem; margin: 0 0 1.5rem; }}
      .bullets {{ font-size: 1.8rem; line-height: 1.6; }}
      .slide-image {{ max-width: 45%; float: right; border-radius: 0.75rem; }}
      .waiting {{ text-align: center; margin-top: 20vh; color: #94a3b8; }}
      .game .question {{ font-size: 2rem; }}
      .options {{ list-style: none; padding: 0; font-size: 1.6rem; }}
      .option {{ background: #111a30; border-radius: 0.75rem; padding: 0.75rem 1rem; margin: 0.5rem 0; }}
      .option.correct {{ background: #15803d; }}
      .progress {{ color: #94a3b8; }}
      .banner {{ position: fixed; left: 50%; bottom: 3rem; transform: translateX(-50%); background: #1f9aa5; padding: 1rem 2.5rem; border-radius: 999px; font-size: 2.2rem; transition: opacity 500ms ease; }}
      .banner.exiting {{ opacity: 0; }}
    </style>
    <script>
      window.MathJax = {{ tex: {{ inlineMath: [['$','$']], displayMath: [['$$','$$']] }}, svg: {{ fontCache: 'global' }} }};
    </script>
    <script defer src=\"{_MATHJAX_SCRIPT}\"></script>
  </head>
  <body>
    {body_html}
  </body>
</html>"""


# Shared by the relay thread and the Qt thread.
renderer = SlideRenderer()
