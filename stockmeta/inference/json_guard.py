import re

_FENCED_JSON = re.compile(r"```json\n(.*?)\n```", re.S)
_FENCED = re.compile(r"```\n(.*?)\n```", re.S)
_BRACES = re.compile(r"\{.*\}", re.S)


def extract_json(text: str) -> str:
    """Best-effort JSON object text out of a chatty model reply."""
    m = _FENCED_JSON.search(text) or _FENCED.search(text)
    if m:
        candidate = m.group(1)
    else:
        m = _BRACES.search(text)
        candidate = m.group(0) if m else text
    candidate = re.sub(r"^[^{]*", "", candidate)
    return re.sub(r"[^}]*$", "", candidate)
