"""FastAPI relay that lets a browser tab act as the audience window."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from threading import Thread
from typing import Any

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import HTMLResponse
import uvicorn

from lesson_app.constants.about import APP_NAME, APP_VERSION
from lesson_app.constants.network_constants import (
    AUDIENCE_PATH,
    CHANNEL_PATH,
    DEFAULT_HOST,
    DEFAULT_PORT,
)
from lesson_app.constants.ui_constants import WAITING_SUBTITLE, WAITING_TITLE
from lesson_app.core.broadcast_bus import BroadcastBus
from lesson_app.core.messages import HeartbeatAck, Message, StateRequest, StateUpdate, parse_message
from lesson_app.core.slide_renderer import renderer
from lesson_app.core.sync_settings import DEFAULT_SETTINGS, SyncSettings

logger = logging.getLogger(__name__)

# A browser tab may only speak as an audience window.
AUDIENCE_MESSAGE_TYPES: tuple[type, ...] = (StateRequest, HeartbeatAck)

_AUDIENCE_PAGE_TEMPLATE = """<!doctype html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <title>LessonQt Audience</title>
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <style>
      :root { font-family: 'Inter', system-ui, sans-serif; background: #0b1120; color: #f5f7ff; }
      body { margin: 0; padding: 2rem 3rem; min-height: 100vh; box-sizing: border-box; }
      .hidden { display: none; }
      #waiting { text-align: center; margin-top: 20vh; color: #94a3b8; }
      .slide-title { font-size: 2.6rem; margin: 0 0 1.5rem; }
      .bullets { font-size: 1.8rem; line-height: 1.6; }
      .slide-image { max-width: 45%; float: right; border-radius: 0.75rem; }
      .question { font-size: 2rem; }
      .options { list-style: none; padding: 0; font-size: 1.6rem; }
      .option { background: #111a30; border-radius: 0.75rem; padding: 0.75rem 1rem; margin: 0.5rem 0; }
      .option.correct { background: #15803d; }
      .progress { color: #94a3b8; }
      #banner { position: fixed; left: 50%; bottom: 3rem; transform: translateX(-50%); background: #1f9aa5; padding: 1rem 2.5rem; border-radius: 999px; font-size: 2.2rem; transition: opacity __BANNER_EXIT_MS__ms ease; }
      #banner.exiting { opacity: 0; }
    </style>
    <script>
      window.MathJax = { tex: { inlineMath: [['$','$']], displayMath: [['$$','$$']] }, svg: { fontCache: 'global' } };
    </script>
    <script defer src=\"https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-mml-chtml.js\"></script>
  </head>
  <body>
    <section id=\"waiting\">
      <h1>__WAITING_TITLE__</h1>
      <p>__WAITING_SUBTITLE__</p>
    </section>
    <section id=\"slide\" class=\"hidden\"></section>
    <section id=\"game\" class=\"hidden\"></section>
    <div id=\"banner\" class=\"hidden\"></div>
    <script>
      const BANNER_MS = __BANNER_MS__;
      const BANNER_EXIT_MS = __BANNER_EXIT_MS__;
      const waitingEl = document.getElementById('waiting');
      const slideEl = document.getElementById('slide');
      const gameEl = document.getElementById('game');
      const bannerEl = document.getElementById('banner');

      let snapshot = null;
      let game = null;
      let bannerTimers = [];
      let closedByPresenter = false;
      let socket = null;

      function setVisibility(element, isVisible) {
        element.classList.toggle('hidden', !isVisible);
      }

      function escapeHtml(text) {
        const div = document.createElement('div');
        div.textContent = text == null ? '' : String(text);
        return div.innerHTML;
      }

      async function typesetMath(target) {
        for (let i = 0; i < 15; i++) {
          if (window.MathJax && window.MathJax.typesetPromise) {
            try {
              await window.MathJax.typesetPromise([target]);
              return;
            } catch (err) {
              console.warn('MathJax typeset error:', err);
            }
          }
          await new Promise(resolve => setTimeout(resolve, 150));
        }
      }

      function renderSlide() {
        const slides = snapshot ? snapshot.slides || [] : [];
        const slide = snapshot ? slides[snapshot.currentIndex] : undefined;
        if (!slide) {
          setVisibility(waitingEl, true);
          setVisibility(slideEl, false);
          return;
        }
        const rendered = slide.contentHtml || (slide.content || []).map(escapeHtml);
        const bullets = rendered.slice(0, snapshot.visibleBullets)
          .map(html => `<li class="bullet">${html}</li>`).join('');
        let html = `<h1 class="slide-title">${escapeHtml(slide.title)}</h1>`;
        if (slide.imageUrl) {
          html += `<img class="slide-image" src="${escapeHtml(slide.imageUrl)}" alt="" />`;
        }
        if (bullets) {
          html += `<ul class="bullets">${bullets}</ul>`;
        }
        slideEl.innerHTML = html;
        setVisibility(waitingEl, false);
        setVisibility(slideEl, true);
        typesetMath(slideEl);
      }

      function renderGame() {
        if (game.mode === 'loading') {
          gameEl.innerHTML = '<h1>Get ready…</h1>';
        } else if (game.mode === 'summary') {
          gameEl.innerHTML = '<h1>Quiz complete</h1>';
        } else {
          const question = (game.questions || [])[game.currentQuestionIndex];
          if (!question) {
            gameEl.innerHTML = '<h1>No question</h1>';
          } else {
            const options = question.options.map((option, index) => {
              const correct = game.isAnswerRevealed && index === question.correctOptionIndex;
              return `<li class="option${correct ? ' correct' : ''}"><strong>${String.fromCharCode(65 + index)}.</strong> ${escapeHtml(option)}</li>`;
            }).join('');
            gameEl.innerHTML =
              `<p class="progress">${game.currentQuestionIndex + 1} / ${game.questions.length}</p>` +
              `<div class="question">${escapeHtml(question.question)}</div>` +
              `<ol class="options">${options}</ol>`;
          }
        }
        setVisibility(waitingEl, false);
        setVisibility(slideEl, false);
        setVisibility(gameEl, true);
        typesetMath(gameEl);
      }

      function render() {
        if (game) {
          renderGame();
        } else {
          setVisibility(gameEl, false);
          renderSlide();
        }
      }

      function clearBannerTimers() {
        bannerTimers.forEach(timer => clearTimeout(timer));
        bannerTimers = [];
      }

      function showBanner(name) {
        clearBannerTimers();
        bannerEl.textContent = name;
        bannerEl.classList.remove('exiting');
        setVisibility(bannerEl, true);
        bannerTimers.push(setTimeout(() => {
          bannerEl.classList.add('exiting');
          bannerTimers.push(setTimeout(hideBanner, BANNER_EXIT_MS));
        }, BANNER_MS));
      }

      function hideBanner() {
        clearBannerTimers();
        bannerEl.classList.remove('exiting');
        setVisibility(bannerEl, false);
      }

      function send(message) {
        if (socket && socket.readyState === WebSocket.OPEN) {
          socket.send(JSON.stringify(message));
        }
      }

      function handleMessage(message) {
        switch (message.type) {
          case 'STATE_UPDATE':
            snapshot = message;
            render();
            break;
          case 'GAME_STATE_UPDATE':
            game = message;
            render();
            break;
          case 'GAME_CLOSE':
            game = null;
            render();
            break;
          case 'STUDENT_SELECT':
            showBanner(message.studentName);
            break;
          case 'STUDENT_CLEAR':
            hideBanner();
            break;
          case 'HEARTBEAT':
            send({ type: 'HEARTBEAT_ACK', timestamp: message.timestamp });
            break;
          case 'CLOSE_AUDIENCE':
            closedByPresenter = true;
            clearBannerTimers();
            socket.close();
            window.close();
            break;
          default:
            break;
        }
      }

      function connect() {
        const scheme = window.location.protocol === 'https:' ? 'wss' : 'ws';
        socket = new WebSocket(`${scheme}://${window.location.host}__CHANNEL_PATH__`);
        socket.addEventListener('open', () => send({ type: 'STATE_REQUEST' }));
        socket.addEventListener('message', event => {
          try {
            handleMessage(JSON.parse(event.data));
          } catch (error) {
            console.warn('Ignoring malformed frame:', error);
          }
        });
        socket.addEventListener('close', () => {
          if (!closedByPresenter) {
            setTimeout(connect, 2000);
          }
        });
      }

      connect();
    </script>
  </body>
</html>
"""


def render_audience_page(settings: SyncSettings = DEFAULT_SETTINGS) -> str:
    """Return the browser audience page with the given timing baked in."""
    replacements = {
        "__BANNER_MS__": str(int(settings.banner_display_seconds * 1000)),
        "__BANNER_EXIT_MS__": str(int(settings.banner_exit_seconds * 1000)),
        "__CHANNEL_PATH__": CHANNEL_PATH,
        "__WAITING_TITLE__": WAITING_TITLE,
        "__WAITING_SUBTITLE__": WAITING_SUBTITLE,
    }
    page = _AUDIENCE_PAGE_TEMPLATE
    for token, value in replacements.items():
        page = page.replace(token, value)
    return page


def message_to_frame(message: Message) -> dict[str, Any]:
    """Wire dict for ``message``; slide bullets gain pre-rendered HTML."""
    frame = message.to_wire()
    if isinstance(message, StateUpdate):
        for slide_frame, slide in zip(frame["slides"], message.slides):
            slide_frame["contentHtml"] = [renderer.render_inline(bullet) for bullet in slide.content]
    return frame


def create_relay_app(bus: BroadcastBus, settings: SyncSettings = DEFAULT_SETTINGS) -> FastAPI:
    """Create a FastAPI application bridging WebSocket clients onto ``bus``."""
    app = FastAPI(title=f"{APP_NAME} Relay", version=APP_VERSION)
    audience_page = render_audience_page(settings)

    @app.get("/", response_class=HTMLResponse)
    def serve_root_page() -> str:
        return audience_page

    @app.get(AUDIENCE_PATH, response_class=HTMLResponse)
    def serve_audience_page() -> str:
        return audience_page

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "channel": settings.channel_name}

    @app.websocket(CHANNEL_PATH)
    async def channel_socket(websocket: WebSocket) -> None:
        loop = asyncio.get_running_loop()
        outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        handle = bus.open(settings.channel_name)

        def forward(message: Message) -> None:
            try:
                loop.call_soon_threadsafe(outbox.put_nowait, message_to_frame(message))
            except RuntimeError:
                logger.debug("Relay loop closed; dropping %s", message.type)

        unsubscribe = bus.subscribe(handle, forward)
        await websocket.accept()
        logger.info("Audience client connected to relay (handle %s)", handle.handle_id)

        async def pump() -> None:
            while True:
                frame = await outbox.get()
                await websocket.send_json(frame)

        sender = asyncio.create_task(pump())
        try:
            while True:
                raw = await websocket.receive_text()
                message = parse_message(raw)
                if message is None:
                    continue
                if not isinstance(message, AUDIENCE_MESSAGE_TYPES):
                    logger.warning("Relay rejected %s from audience client", message.type)
                    continue
                bus.publish(handle, message)
        except WebSocketDisconnect:
            logger.info("Audience client disconnected from relay")
        finally:
            sender.cancel()
            with contextlib.suppress(asyncio.CancelledError, WebSocketDisconnect, RuntimeError):
                await sender
            unsubscribe()
            bus.close(handle)

    return app


def start_relay_server(
    bus: BroadcastBus,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    settings: SyncSettings = DEFAULT_SETTINGS,
) -> Thread:
    """Start the relay in a background daemon thread."""
    app = create_relay_app(bus, settings)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="LessonRelayServer", daemon=True)
    thread.start()
    logger.info("Relay listening on http://%s:%d%s", host, port, AUDIENCE_PATH)
    return thread
