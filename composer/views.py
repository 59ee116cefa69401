from __future__ import annotations

import json
from html import escape
from typing import Any

from .json_builder import FIELD_TYPE_LABELS, FieldEntry, field_error
from .session import ComposerSession

DEFAULT_VALUE_PLACEHOLDER = {"string": "value", "number": "0", "object": '{"nested": "object"}'}

STYLE = """
body { font-family: system-ui, sans-serif; max-width: 960px; margin: 2rem auto; }
section { border: 1px solid #ddd; border-radius: 6px; padding: 1rem; margin-bottom: 1rem; }
.error { color: #b00020; } .success { color: #1b5e20; }
.input-error { border-color: #b00020; } .field-error { color: #b00020; font-size: .85em; }
.json-row { display: flex; gap: .4rem; align-items: center; margin: .2rem 0 .2rem 1.5rem; }
pre.item-data { background: #f6f8fa; padding: .5rem; }
li.editing { background: #fffbe6; }
.active { font-weight: bold; }
""".strip()


def _e(value: Any) -> str:
    return escape(str(value), quote=True)


def _pretty(data: Any) -> str:
    return _e(json.dumps(data, indent=2, ensure_ascii=False))


def _post_button(action: str, label: str, *, css: str = "", confirm: str | None = None, disabled: bool = False) -> str:
    onsubmit = f' onsubmit="return confirm(\'{_e(confirm)}\')"' if confirm else ""
    return (
        f'<form method="post" action="{_e(action)}" style="display:inline"{onsubmit}>'
        f'<button type="submit" class="{css}"{" disabled" if disabled else ""}>{_e(label)}</button>'
        "</form>"
    )


def _render_record(record: dict[str, Any], *, created_label: str = "") -> str:
    rid = str(record.get("id", ""))
    created = _e(created_label) + _e(record.get("createdAt", ""))
    data = _pretty(record.get("data"))
    edit = _post_button(f"/ui/edit/{rid}", "Edit", css="btn-edit")
    delete = _post_button(
        f"/ui/delete/{rid}", "Delete", css="btn-delete", confirm="Are you sure you want to delete this?"
    )
    return f"""
<div class="item-header">
  <span class="item-id">ID: {_e(rid)}</span>
  <span class="item-date">{created}</span>
</div>
<pre class="item-data">{data}</pre>
<div class="item-actions">
  {edit}
  {delete}
</div>
""".strip()


def render_search(s: ComposerSession) -> str:
    parts = [
        "<section class=\"search-section\">",
        "<h2>Search by ID</h2>",
        '<form method="post" action="/ui/search" class="search-box">'
        f'<input type="text" name="search_id" value="{_e(s.search_id)}" '
        'placeholder="Enter settings ID (e.g., 3bd7923c-...)" />'
        '<button type="submit" class="btn-primary">Search</button></form>',
    ]
    if s.search_result is not None:
        parts.append(_post_button("/ui/search/clear", "Clear", css="btn-secondary"))
    if s.search_error:
        parts.append(f'<div class="error"><strong>&#9888; {_e(s.search_error)}</strong></div>')
    if s.search_result is not None:
        parts.append(
            '<div class="search-result"><h3>Found Settings:</h3><div class="result-card">'
            + _render_record(s.search_result, created_label="Created: ")
            + "</div></div>"
        )
    parts.append("</section>")
    return "\n".join(parts)


def _render_value_input(f: FieldEntry, error: str | None) -> str:
    css = "json-value-input" + (" input-error" if error else "")
    if f.type == "boolean":
        options = "".join(
            f'<option value="{v}"{" selected" if f.value == v else ""}>{v}</option>' for v in ("true", "false")
        )
        return f'<select name="value" class="json-bool-select" onchange="this.form.submit()">{options}</select>'
    quote = '<span class="json-quote">"</span>' if f.type == "string" else ""
    field = (
        f'<input type="text" name="value" class="{css}" value="{_e(f.value)}" '
        f'placeholder="{_e(DEFAULT_VALUE_PLACEHOLDER[f.type])}" />'
    )
    msg = f'<span class="field-error">{_e(error)}</span>' if error else ""
    return f"{quote}{field}{quote}{msg}"


def render_json_builder(s: ComposerSession) -> str:
    fields = s.builder.fields
    rows = []
    for index, f in enumerate(fields):
        error = field_error(f)
        type_options = "".join(
            f'<option value="{t}"{" selected" if f.type == t else ""}>{_e(label)}</option>'
            for t, label in FIELD_TYPE_LABELS.items()
        )
        comma = "," if index < len(fields) - 1 else ""
        rows.append(
            f'<div class="json-row">'
            f'<form method="post" action="/ui/field/{f.id}">'
            f'<span class="json-quote">"</span>'
            f'<input type="text" name="key" class="json-key-input" value="{_e(f.key)}" placeholder="key" />'
            f'<span class="json-quote">"</span><span class="json-colon">:</span>'
            f'<select name="type" class="json-type-select" onchange="this.form.submit()">{type_options}</select>'
            f"{_render_value_input(f, error)}"
            f'<span class="json-comma">{comma}</span>'
            f'<button type="submit" title="Apply">&#10003;</button>'
            f"</form>"
            f'{_post_button(f"/ui/field/{f.id}/remove", "×", css="json-remove-btn")}'
            f"</div>"
        )
    return (
        '<div class="json-builder"><div class="json-bracket">{</div>'
        f'<div class="json-fields">{"".join(rows)}</div>'
        '<div class="json-bracket">}</div>'
        f'{_post_button("/ui/field/add", "+ Add Field", css="json-add-btn")}'
        "</div>"
    )


def render_editor(s: ComposerSession) -> str:
    title = f"Edit Settings (ID: {_e(s.editing_id)})" if s.editing_id else "Create New Settings"
    mode_toggle = (
        _post_button("/ui/mode/visual", "Visual", css="active" if s.editor_mode == "visual" else "")
        + _post_button("/ui/mode/raw", "Raw JSON", css="active" if s.editor_mode == "raw" else "")
    )
    messages = ""
    if s.error:
        messages += f'<div class="error"><strong>&#9888; {_e(s.error)}</strong></div>'
    success = s.success
    if success:
        ttl_ms = int(s.success_ttl * 1000)
        messages += (
            f'<div class="success" id="success-message"><strong>&#10003; {_e(success)}</strong></div>'
            f"<script>setTimeout(function () {{ var el = document.getElementById('success-message');"
            f" if (el) el.remove(); }}, {ttl_ms});</script>"
        )

    disabled = " disabled" if not s.can_submit else ""
    if s.editing_id:
        submit = (
            f'<button type="submit" formaction="/ui/update" class="btn-primary"{disabled}>Update</button>'
            '<button type="submit" formaction="/ui/cancel" class="btn-secondary">Cancel</button>'
        )
    else:
        submit = f'<button type="submit" formaction="/ui/create" class="btn-primary"{disabled}>Create</button>'

    if s.editor_mode == "visual":
        body = render_json_builder(s)
        actions = f'<form method="post" class="button-group">{submit}</form>'
    else:
        invalid = s.raw_invalid
        css = ' class="invalid"' if invalid else ""
        body = ""
        actions = (
            '<form method="post" class="button-group">'
            f'<textarea name="json_input" rows="8" placeholder="Enter JSON data..."{css}>'
            f"{_e(s.json_input)}</textarea>"
            + ('<div class="error"><strong>&#9888; Invalid JSON format</strong></div>' if invalid else "")
            + f'<div><button type="submit" formaction="/ui/raw">Check</button>{submit}</div></form>'
        )

    return f"""
<section class="editor-section">
  <div class="editor-header"><h2>{title}</h2><div class="editor-mode-toggle">{mode_toggle}</div></div>
  {messages}
  {body}
  {actions}
</section>
""".strip()


def render_list(s: ComposerSession) -> str:
    p = s.pagination
    head = (
        f"<h2>All Settings (Page {p.page} of {p.total_pages})</h2>"
        f'<p class="total-count">Total: {p.total} items</p>'
    )
    if not s.settings:
        return f'<section class="list-section">{head}<p class="empty">No settings found. Create one above!</p></section>'

    items = "".join(
        f'<li class="{"editing" if s.editing_id == item.get("id") else ""}">{_render_record(item)}</li>'
        for item in s.settings
    )
    pager = (
        '<div class="pagination">'
        + _post_button(f"/ui/page/{p.page - 1}", "Previous", disabled=p.page <= 1)
        + f"<span>Page {p.page} of {p.total_pages}</span>"
        + _post_button(f"/ui/page/{p.page + 1}", "Next", disabled=p.page >= p.total_pages)
        + "</div>"
    )
    return f'<section class="list-section">{head}<ul class="settings-list">{items}</ul>{pager}</section>'


def render_page(s: ComposerSession) -> str:
    return f"""
<!doctype html>
<html>
  <head><meta charset="utf-8"><title>Settings Management</title><style>{STYLE}</style></head>
  <body>
    <h1>Settings Management</h1>
    {render_search(s)}
    {render_editor(s)}
    {render_list(s)}
  </body>
</html>
""".strip()
