"""Unit tests for ResponseSynthesisAgent."""

import pytest

from opschat.agents.response_synthesis import FALLBACK_GREETING, ResponseSynthesisAgent
from opschat.models.chat import QueryResult, QueryUnderstanding, Turn
from opschat.models.errors import LLMError


@pytest.fixture
def agent(mock_llm_provider):
    return ResponseSynthesisAgent(llm_provider=mock_llm_provider)


@pytest.mark.asyncio
async def test_answer_prompt_includes_results_and_history(agent, mock_llm_provider):
    mock_llm_provider.set_response("There are 2 pending jobs.")
    result = QueryResult(
        sql='SELECT job_id FROM "Job"',
        rows=[{"job_id": 1}, {"job_id": 2}],
        row_count=2,
    )
    understanding = QueryUnderstanding(intent="count", entities=["jobs", "pending"], timeframe="today")
    history = [Turn(role="user", content="Hi"), Turn(role="assistant", content="Hello!")]

    answer = await agent.execute(
        query="How many pending jobs?",
        understanding=understanding,
        result=result,
        history=history,
    )

    assert answer == "There are 2 pending jobs."
    prompt = mock_llm_provider.prompts()[0]
    assert "Query intent: count" in prompt
    assert "Entities mentioned: jobs, pending" in prompt
    assert "Timeframe: today" in prompt
    assert "Data retrieved (2 records):" in prompt
    assert '"job_id": 2' in prompt
    assert "user: Hi\nassistant: Hello!" in prompt
    assert "User question: How many pending jobs?" in prompt


@pytest.mark.asyncio
async def test_answer_prompt_without_timeframe_or_history(agent, mock_llm_provider):
    mock_llm_provider.set_response("No bookings found.")

    await agent.execute(
        query="Bookings?",
        understanding=QueryUnderstanding.fallback(),
        result=QueryResult(sql="SELECT 1", rows=[], row_count=0),
    )

    prompt = mock_llm_provider.prompts()[0]
    assert "Timeframe" not in prompt
    assert "Conversation context" not in prompt


@pytest.mark.asyncio
async def test_answer_model_failure_raises(agent, mock_llm_provider):
    mock_llm_provider.set_responses([RuntimeError("quota exceeded")])

    with pytest.raises(LLMError, match="quota exceeded"):
        await agent.execute(
            query="Bookings?",
            understanding=QueryUnderstanding.fallback(),
            result=QueryResult(sql="SELECT 1"),
        )


@pytest.mark.asyncio
async def test_small_talk(agent, mock_llm_provider):
    mock_llm_provider.set_response("Hi! Ask me about your jobs.")

    assert await agent.small_talk("hello") == "Hi! Ask me about your jobs."


@pytest.mark.asyncio
async def test_small_talk_falls_back_to_greeting(agent, mock_llm_provider):
    mock_llm_provider.set_responses([RuntimeError("down")])

    assert await agent.small_talk("hello") == FALLBACK_GREETING
