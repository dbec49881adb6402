"""
Minimal HTML pages for form-style routes (error page with a Go Back link).
"""

from html import escape

from fastapi.responses import HTMLResponse

PAGE_STYLE = """
    body { font-family: Arial, sans-serif; max-width: 600px; margin: 50px auto; padding: 20px; text-align: center; }
    .box { border-radius: 5px; padding: 20px; margin: 20px 0; }
    .error { background-color: #ffe6e6; border: 1px solid #ff4444; }
    .error h2 { color: #cc0000; margin-top: 0; }
    .success { background-color: #e6ffe6; border: 1px solid #44ff44; }
    .success h2 { color: #00aa00; margin-top: 0; }
    a { display: inline-block; margin-top: 20px; padding: 10px 20px; background-color: #007bff;
        color: white; text-decoration: none; border-radius: 4px; }
"""


def error_page(status_code: int, message: str) -> HTMLResponse:
    html = f"""<!DOCTYPE html>
<html>
<head><title>Error</title><style>{PAGE_STYLE}</style></head>
<body>
  <div class="box error">
    <h2>Error</h2>
    <p>{escape(message)}</p>
  </div>
  <a href="javascript:history.back()">Go Back</a>
</body>
</html>"""
    return HTMLResponse(content=html, status_code=status_code)
