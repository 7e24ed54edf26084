from html import escape
from string import Template
from typing import List, Tuple

from .surfaces import PageSession


_PAGE = Template("""<!DOCTYPE html>
<html lang="en"$theme_attr>
<head>
<meta charset="utf-8">
<title>Map Explorer</title>
<style>
  :root { --bg: #1f1f1f; --fg: #e3e3e3; --accent: #8ab4f8; }
  [data-theme="light"] { --bg: #ffffff; --fg: #1f1f1f; --accent: #1a73e8; }
  body { background: var(--bg); color: var(--fg); font-family: sans-serif; margin: 0; }
  #embed-map { border: 0; width: 100%; height: 70vh; }
  #presets button { margin: 4px; color: var(--accent); }
  .hidden { display: none; }
</style>
</head>
<body>
<iframe id="embed-map" src="$map_src" allowfullscreen></iframe>
<div id="caption" class="$caption_class">$caption</div>
<div id="directions-result" class="$directions_class">$directions_result</div>
<div id="presets">$buttons</div>
<div id="directions-form">
  <input id="origin" value="$origin">
  <input id="destination" value="$destination">
  <button id="get-directions">Get directions</button>
</div>
<script>
const sessionId = "$session_id";
const base = "/sessions/" + sessionId;

function apply(state) {
  const frame = document.querySelector("#embed-map");
  if (state.map_src && frame.getAttribute("src") !== state.map_src) frame.src = state.map_src;
  const caption = document.querySelector("#caption");
  caption.textContent = state.caption;
  caption.classList.toggle("hidden", !state.caption_visible);
  const result = document.querySelector("#directions-result");
  result.textContent = state.directions_result;
  result.classList.toggle("hidden", !state.directions_visible);
}

async function post(path, body) {
  const resp = await fetch(base + path, {
    method: "POST",
    headers: {"Content-Type": "application/json"},
    body: JSON.stringify(body || {}),
  });
  if (!resp.ok) throw new Error(path + " -> " + resp.status);
}

new EventSource(base + "/events").onmessage = (e) => apply(JSON.parse(e.data));

document.querySelectorAll("#presets button").forEach((button) => {
  button.addEventListener("click", () => {
    post("/presets/" + button.dataset.index).catch((e) => console.error("got error", e));
  });
});

document.querySelector("#get-directions").addEventListener("click", () => {
  post("/directions", {
    origin: document.querySelector("#origin").value,
    destination: document.querySelector("#destination").value,
  }).catch((e) => console.error("got error", e));
});
</script>
</body>
</html>
""")


def _hidden(visible: bool) -> str:
    return "" if visible else "hidden"


def render_page(session: PageSession, presets: List[Tuple[str, str]]) -> str:
    buttons = "".join(
        f'<button data-index="{i}" title="{escape(prompt)}">{escape(label)}</button>'
        for i, (label, prompt) in enumerate(presets)
    )
    surfaces = session.surfaces
    return _PAGE.substitute(
        theme_attr=f' data-theme="{escape(session.theme)}"' if session.theme else "",
        map_src=escape(surfaces.map_src),
        caption=escape(surfaces.caption),
        caption_class=_hidden(surfaces.caption_visible),
        directions_result=escape(surfaces.directions_result),
        directions_class=_hidden(surfaces.directions_visible),
        buttons=buttons,
        origin=escape(session.origin),
        destination=escape(session.destination),
        session_id=escape(session.id),
    )
