"""Box page, creation redirect, and text read endpoints."""
from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from ..schemas.boxes import BoxNotFoundResponse, BoxTextResponse
from ..services.registry import registry

router = APIRouter()

BOX_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
<head>
    <meta charset=\"UTF-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1.0\" />
    <title>BigTextBox</title>
    <style>
        html, body { height: 100%; margin: 0; background: #0f172a; color: #e2e8f0; font-family: system-ui, sans-serif; }
        header { display: flex; justify-content: space-between; align-items: center; padding: 0.75rem 1.5rem; border-bottom: 1px solid #1e293b; }
        textarea { box-sizing: border-box; width: 100%; height: calc(100% - 3.5rem); padding: 1.5rem; border: 0; resize: none; outline: none;
                   background: transparent; color: inherit; font: 1rem/1.5 ui-monospace, monospace; }
        #status { font-size: 0.85rem; color: #94a3b8; }
    </style>
</head>
<body>
    <header>
        <strong>BigTextBox</strong>
        <span id=\"status\">Connecting...</span>
    </header>
    <textarea id=\"box\" spellcheck=\"false\" placeholder=\"Start typing. Everyone with this link sees your changes.\"></textarea>

    <script>
        const boxId = decodeURIComponent(window.location.pathname.split('/').pop());
        const boxEl = document.getElementById('box');
        const statusEl = document.getElementById('status');
        let socket = null;

        async function loadText() {
            const response = await fetch(`/api/box/${encodeURIComponent(boxId)}`);
            if (response.ok) {
                const payload = await response.json();
                boxEl.value = payload.text;
            }
        }

        function applyRemoteText(text) {
            const start = boxEl.selectionStart;
            const end = boxEl.selectionEnd;
            boxEl.value = text;
            boxEl.setSelectionRange(Math.min(start, text.length), Math.min(end, text.length));
        }

        function connect() {
            const scheme = window.location.protocol === 'https:' ? 'wss' : 'ws';
            socket = new WebSocket(`${scheme}://${window.location.host}/ws`);

            socket.addEventListener('open', () => {
                socket.send(JSON.stringify({ type: 'join', boxId }));
            });

            socket.addEventListener('message', (event) => {
                const data = JSON.parse(event.data);
                if (data.type === 'textUpdate') {
                    applyRemoteText(data.text);
                } else if (data.type === 'userCount') {
                    statusEl.textContent = data.count === 1 ? 'Only you here' : `${data.count} people here`;
                }
            });

            socket.addEventListener('close', () => {
                statusEl.textContent = 'Disconnected, retrying...';
                setTimeout(connect, 1000);
            });
        }

        boxEl.addEventListener('input', () => {
            if (socket && socket.readyState === WebSocket.OPEN) {
                socket.send(JSON.stringify({ type: 'textUpdate', text: boxEl.value }));
            }
        });

        loadText().finally(connect);
    </script>
</body>
</html>
"""


@router.get("/", include_in_schema=False)
async def create_box() -> RedirectResponse:
    """Start a fresh box and send the browser to it."""

    box_id = await registry.create_box()
    return RedirectResponse(url=f"/box/{box_id}", status_code=302)


@router.get("/box/{box_id}", response_class=HTMLResponse, tags=["boxes"])
async def box_page(box_id: str) -> HTMLResponse:
    """Serve the editor, creating the box on first visit."""

    await registry.ensure_box(box_id)
    return HTMLResponse(BOX_PAGE)


@router.get(
    "/api/box/{box_id}",
    response_model=BoxTextResponse,
    responses={404: {"model": BoxNotFoundResponse}},
    tags=["boxes"],
)
async def read_box(box_id: str) -> BoxTextResponse | JSONResponse:
    text = await registry.get_text(box_id)
    if text is None:
        return JSONResponse(status_code=404, content=BoxNotFoundResponse().model_dump())
    return BoxTextResponse(text=text)
