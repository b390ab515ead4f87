"""Results view layout.

Results pages are private to whoever ran the analysis: every response under
``/results`` tells crawlers not to index the page or follow its links, both
in the ``X-Robots-Tag`` header and in the document's robots meta tag.
"""

from dataclasses import dataclass
from html import escape

from fastapi import APIRouter, Depends, Response
from fastapi.responses import HTMLResponse


@dataclass(frozen=True)
class PageMetadata:
    robots: str


RESULTS_METADATA = PageMetadata(robots="noindex, nofollow")

_LAYOUT = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="robots" content="{robots}">
<title>Results</title>
</head>
<body>
{body}
</body>
</html>
"""


def render_results_layout(body: str, metadata: PageMetadata = RESULTS_METADATA) -> str:
    """Wrap already-rendered page content in the results layout."""
    return _LAYOUT.format(robots=escape(metadata.robots), body=body)


async def apply_results_metadata(response: Response) -> None:
    response.headers["X-Robots-Tag"] = RESULTS_METADATA.robots


router = APIRouter(
    prefix="/results",
    tags=["results"],
    dependencies=[Depends(apply_results_metadata)],
)


@router.get("/{result_id}", response_class=HTMLResponse)
async def results_page(result_id: str) -> str:
    """Shell page for one analysis; the client fills in the report."""
    return render_results_layout(
        f'<main id="results" data-result-id="{escape(result_id)}"></main>'
    )
