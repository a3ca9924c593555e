import httpx
import pytest

from zine.preview.lint import UrlCondition, lint_urls


@pytest.mark.asyncio
async def test_lint_reports_each_condition(respx_mock):
    respx_mock.head("https://ok.example/").mock(return_value=httpx.Response(200))
    respx_mock.head("https://gone.example/").mock(return_value=httpx.Response(404))
    respx_mock.head("https://moved.example/").mock(
        return_value=httpx.Response(301, headers={"location": "https://new.example/"})
    )
    respx_mock.head("https://broken.example/").mock(return_value=httpx.Response(503))
    respx_mock.head("https://down.example/").mock(side_effect=httpx.ConnectError("refused"))

    statuses = await lint_urls(
        [
            "https://ok.example/",
            "https://gone.example/",
            "https://moved.example/",
            "https://broken.example/",
            "https://down.example/",
        ],
        timeout=2,
    )

    assert [status.condition for status in statuses] == [
        UrlCondition.OK,
        UrlCondition.NOT_FOUND,
        UrlCondition.REDIRECTED,
        UrlCondition.SERVER_ERROR,
        UrlCondition.UNREACHABLE,
    ]
    assert statuses[2].detail == "https://new.example/"
    assert statuses[3].status_code == 503
    assert [status.ok for status in statuses] == [True, False, False, False, False]


@pytest.mark.asyncio
async def test_lint_checks_each_url_once(respx_mock):
    route = respx_mock.head("https://ok.example/").mock(return_value=httpx.Response(200))

    statuses = await lint_urls(["https://ok.example/", "https://ok.example/"])

    assert len(statuses) == 1
    assert route.call_count == 1
