"""
Widget embed script.

Third-party pages include this script to mount the chat widget in a
full-screen transparent iframe.
"""

from fastapi import APIRouter, Request
from fastapi.responses import Response

router = APIRouter()

WIDGET_CONTAINER_ID = "onexus-chatwidget-container"

_SCRIPT_TEMPLATE = """
(function() {
  if (window.ChatWidgetLoaded) return;
  window.ChatWidgetLoaded = true;

  const widgetContainer = document.createElement('div');
  widgetContainer.id = '%(container_id)s';
  widgetContainer.style.cssText = `
    position: fixed;
    top: 0;
    left: 0;
    width: 100%%;
    height: 100%%;
    pointer-events: none;
    z-index: 999999;
  `;

  const iframe = document.createElement('iframe');
  iframe.src = '%(origin)s/widget';
  iframe.style.cssText = `
    border: none;
    width: 100%%;
    height: 100%%;
    background: transparent;
    pointer-events: auto;
  `;
  iframe.setAttribute('allow', 'clipboard-write');

  widgetContainer.appendChild(iframe);
  document.body.appendChild(widgetContainer);

  window.addEventListener('message', function(event) {
    if (event.origin !== '%(origin)s') return;
  });
})();
"""


def render_widget_script(origin: str) -> str:
    """Embed script pointing at `origin`."""
    return _SCRIPT_TEMPLATE % {
        "origin": origin.rstrip("/"),
        "container_id": WIDGET_CONTAINER_ID,
    }


@router.get("/widget-script")
async def widget_script(request: Request) -> Response:
    origin = str(request.base_url).rstrip("/")
    return Response(
        content=render_widget_script(origin),
        media_type="application/javascript",
        headers={"Cache-Control": "public, max-age=3600"},
    )
