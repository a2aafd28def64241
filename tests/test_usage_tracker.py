import threading

from app.llm.service.usage_tracker import HISTORY_SIZE, UsageTracker


def test_counts_by_model_and_provider():
    usage = UsageTracker()
    usage.record("openai", "gpt-4", "success", 120)
    usage.record("openai", "gpt-3.5-turbo", "success", 80)
    usage.record("google", "gemini-pro", "error", 5, error="Google AI API key not configured")

    snapshot = usage.snapshot()
    assert snapshot["totalRequests"] == 3
    assert snapshot["providerUsage"] == {"openai": 2, "google": 1}
    assert snapshot["modelUsage"] == {"gpt-4": 1, "gpt-3.5-turbo": 1, "gemini-pro": 1}
    assert snapshot["errors"] == {"gemini-pro": 1}


def test_history_is_newest_first_and_bounded():
    usage = UsageTracker()
    for i in range(HISTORY_SIZE + 20):
        usage.record("openai", f"model-{i}", "success", i)

    history = usage.snapshot()["requestHistory"]
    assert len(history) == HISTORY_SIZE
    assert history[0]["model"] == f"model-{HISTORY_SIZE + 19}"
    assert history[-1]["model"] == "model-20"
    assert usage.snapshot()["totalRequests"] == HISTORY_SIZE + 20


def test_concurrent_records_are_not_lost():
    usage = UsageTracker()

    def worker():
        for _ in range(500):
            usage.record("anthropic", "claude-3-haiku-20240307", "success", 1)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    snapshot = usage.snapshot()
    assert snapshot["totalRequests"] == 4000
    assert snapshot["modelUsage"]["claude-3-haiku-20240307"] == 4000
