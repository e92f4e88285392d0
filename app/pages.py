"""HTML pages served by the upload server."""
import html
from typing import List
from urllib.parse import quote
from config import Settings
from app.models.stored_file import StoredFile

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{title}</title>
    <style>
        {head}
{style}
    </style>
</head>
<body>
    {body}
    <h1>{title}</h1>
{content}
</body>
</html>
"""

TABLE_STYLE = """        table {
            border-collapse: collapse;
            width: 100%;
        }
        th, td {
            text-align: left;
            padding: 8px;
            border-bottom: 1px solid #ddd;
        }
        tr:hover {
            background-color: #f5f5f5;
        }
        th {
            background-color: #4CAF50;
            color: white;
        }"""


def _custom_fragments(settings: Settings):
    """Return the configured head/body fragments, escaped when XSS protection is on.

    The head fragment is page CSS and lands inside the <style> block.
    """
    if settings.enable_xss_protection:
        return html.escape(settings.custom_html_head), html.escape(settings.custom_html_body)
    return settings.custom_html_head, settings.custom_html_body


def file_url(file_id: str) -> str:
    return f"/file/{quote(file_id)}"


def render_page(settings: Settings, title: str, content: str, style: str = "") -> str:
    head, body = _custom_fragments(settings)
    return PAGE_TEMPLATE.format(title=title, head=head, body=body, style=style, content=content)


def render_index(settings: Settings) -> str:
    content = """    <form action="/upload" method="post" enctype="multipart/form-data">
        <input type="file" name="file" id="file">
        <input type="submit" value="Upload">
    </form>
    <br>
    <a href="/list">View file list</a>"""
    return render_page(settings, "File Upload", content)


def render_upload_success(settings: Settings, file_id: str) -> str:
    content = f"""    <p>The file has been uploaded!</p>
    <p><a href="{html.escape(file_url(file_id))}">Click here</a> to view the file.</p>
    <a href="/list">View file list</a>"""
    return render_page(settings, "Upload Successful", content)


def render_file_list(settings: Settings, files: List[StoredFile]) -> str:
    rows = "\n".join(
        f'        <tr><td><a href="{html.escape(file_url(f.file_id))}">{html.escape(f.file_id)}</a></td>'
        f'<td>{html.escape(f.filename)}</td></tr>'
        for f in files
    )
    content = f"""    <table>
        <tr>
            <th>ID</th>
            <th>Filename</th>
        </tr>
{rows}
    </table>
    <br>
    <a href="/">Back to upload page</a>"""
    return render_page(settings, "File List", content, style=TABLE_STYLE)
