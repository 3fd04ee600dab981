import asyncio

import pytest
from conftest import DATA_URL, MODEL_URL, POLL_URL, pending, success

from core.exceptions import JobIncompleteError
from domain.models import JobState
from services.job_orchestrator import JobOrchestrator, PollingPolicy


@pytest.mark.asyncio
@pytest.mark.parametrize("pending_count", [0, 1, 5, 59])
async def test_n_pending_then_success_makes_n_plus_one_calls(orchestrator, mock_client, mock_sleep, pending_count):
    mock_client.fetch_status.side_effect = [{"status": "processing"}] * pending_count + [
        success(proxy_links=[MODEL_URL])
    ]

    outcome = await orchestrator.poll(POLL_URL, PollingPolicy(interval_seconds=6.0, max_attempts=60))

    assert outcome.state == JobState.SUCCESS
    assert outcome.attempts == pending_count + 1
    assert mock_client.fetch_status.await_count == pending_count + 1
    assert mock_sleep.await_count == pending_count + 1
    assert all(c.args[0] == 6.0 for c in mock_sleep.await_args_list)


@pytest.mark.asyncio
async def test_failed_status_stops_immediately(orchestrator, mock_client):
    """
    Scenario: failed arrives on the 3rd check, more responses are queued.
    Expectation: Loop stops at FAILED, no 4th call.
    """
    mock_client.fetch_status.side_effect = [
        {"status": "processing"},
        {"status": "processing"},
        {"status": "failed"},
        success(proxy_links=[MODEL_URL]),
    ]

    outcome = await orchestrator.poll(POLL_URL, PollingPolicy(interval_seconds=6.0, max_attempts=60))

    assert outcome.state == JobState.FAILED
    assert outcome.last_raw == {"status": "failed"}
    assert mock_client.fetch_status.await_count == 3


@pytest.mark.asyncio
async def test_exhaustion_makes_exactly_max_attempts_calls(orchestrator, mock_client, mock_sleep):
    """
    Scenario: Job stays pending forever.
    Expectation: EXHAUSTED after exactly max_attempts calls, last payload kept.
    """
    responses = [{"status": "processing", "eta": i} for i in range(60)]
    mock_client.create_text_job.return_value = pending()
    mock_client.fetch_status.side_effect = responses

    with pytest.raises(JobIncompleteError) as exc_info:
        await orchestrator.submit_text_job("a teapot")

    assert mock_client.fetch_status.await_count == 60
    assert mock_sleep.await_count == 60
    assert exc_info.value.raw == responses[-1]


@pytest.mark.asyncio
async def test_unknown_statuses_keep_polling(orchestrator, mock_client):
    mock_client.fetch_status.side_effect = [
        {"status": "queued"},
        {"status": "error"},
        {},
        success(output=[MODEL_URL]),
    ]

    outcome = await orchestrator.poll(POLL_URL, PollingPolicy(interval_seconds=1.0, max_attempts=10))

    assert outcome.state == JobState.SUCCESS
    assert outcome.attempts == 4


@pytest.mark.asyncio
async def test_small_budget_exhausts(orchestrator, mock_client):
    mock_client.fetch_status.return_value = {"status": "processing"}

    outcome = await orchestrator.poll(POLL_URL, PollingPolicy(interval_seconds=1.0, max_attempts=3))

    assert outcome.state == JobState.EXHAUSTED
    assert outcome.attempts == 3
    assert mock_client.fetch_status.await_count == 3


def test_default_policies_keep_total_ceilings():
    from services.job_orchestrator import IMAGE_POLLING, TEXT_POLLING

    assert TEXT_POLLING.ceiling_seconds == 6 * 60
    assert IMAGE_POLLING.ceiling_seconds == 8 * 60


@pytest.mark.asyncio
async def test_concurrent_jobs_do_not_block_each_other(mock_client):
    """
    Scenario: A text job is stuck waiting while an image job runs.
    Expectation: The image job completes on its own; the text job finishes once released.
    """
    release_text = asyncio.Event()

    async def sleep(seconds):
        if seconds == 6.0:
            await release_text.wait()

    async def fetch_status(url):
        return success(proxy_links=[f"{url}.glb"])

    mock_client.create_text_job.return_value = {"status": "processing", "fetch_result": "https://poll/text"}
    mock_client.create_image_job.return_value = {"status": "processing", "fetch_result": "https://poll/image"}
    mock_client.fetch_status.side_effect = fetch_status

    orchestrator = JobOrchestrator(client=mock_client, sleep=sleep)

    text_task = asyncio.create_task(orchestrator.submit_text_job("a teapot"))
    image_result = await asyncio.wait_for(orchestrator.submit_image_job(DATA_URL), timeout=1)

    assert image_result.model_url == "https://poll/image.glb"
    assert not text_task.done()

    release_text.set()
    text_result = await asyncio.wait_for(text_task, timeout=1)

    assert text_result.model_url == "https://poll/text.glb"


@pytest.mark.asyncio
async def test_real_sleep_interleaves_concurrent_polls(mock_client):
    calls = []

    async def fetch_status(url):
        calls.append(url)
        if calls.count(url) < 3:
            return {"status": "processing"}
        return success(output=[url])

    mock_client.fetch_status.side_effect = fetch_status
    orchestrator = JobOrchestrator(client=mock_client)
    policy = PollingPolicy(interval_seconds=0.01, max_attempts=10)

    a, b = await asyncio.gather(
        orchestrator.poll("https://poll/a", policy),
        orchestrator.poll("https://poll/b", policy),
    )

    assert a.state == b.state == JobState.SUCCESS
    assert len(calls) == 6
    # b is checked before a finishes
    assert calls.index("https://poll/b") < len(calls) - 1 - calls[::-1].index("https://poll/a")
