import pytest

from webarchive.config import Settings
from webarchive.errors import (
    AggregateFailureError,
    CancelledError,
    ConnectivityError,
    MalformedResponseError,
    NotFoundError,
)
from webarchive.resolver import Outcome, Resolver
from webarchive.retry import CancelToken

from .conftest import FakeClient

A = "http://example.com/a"
B = "https://example.org/b"
C = "http://example.net/c"
TS = "20200101000000"


def archived(url, ts=TS):
    return f"https://web.archive.org/{ts}/{url}"


class TestSkipReason:
    @pytest.fixture
    def resolver(self):
        return Resolver(FakeClient(), Settings(skip_hosts=("www.spotlightpa.org", "Spotlightpa.org")))

    def test_script(self, resolver):
        assert resolver.skip_reason("https://cdn.example.com/app.js") == "script"

    def test_archive_host_is_always_skipped(self):
        resolver = Resolver(FakeClient(), Settings())
        assert resolver.skip_reason("https://web.archive.org/2020/http://x.example/") == "skipped host"

    def test_configured_hosts(self, resolver):
        assert resolver.skip_reason("https://www.spotlightpa.org/news/") == "skipped host"
        assert resolver.skip_reason("https://SPOTLIGHTPA.ORG/") == "skipped host"
        assert resolver.skip_reason("https://news.spotlightpa.org/") is None

    @pytest.mark.parametrize("url", [
        "http://[::1/x",
        "http://example.com:99999/",
        "http://example.com:port/",
        "http://example.com/%zz",
        "http://:80/",
    ])
    def test_unparseable(self, resolver, url):
        assert resolver.skip_reason(url) == "unparseable"

    def test_plain_url(self, resolver):
        assert resolver.skip_reason(A) is None
        assert resolver.skip_reason("http://example.com/a%20b") is None


class TestResolve:
    def test_example_scenario(self, sleep):
        client = FakeClient({A: TS})
        resolution = Resolver(client, sleep=sleep).resolve([A, A])
        assert resolution.replacements == {A: archived(A)}
        assert resolution.error() is None
        assert client.urls_called() == [A]

    def test_duplicates_looked_up_once(self, sleep):
        client = FakeClient({A: TS, B: "2019"})
        Resolver(client, sleep=sleep).resolve([A, B, A, B, A])
        assert client.urls_called() == [A, B]

    def test_failed_duplicates_are_not_retried_again(self, sleep):
        client = FakeClient()
        resolution = Resolver(client, Settings(retries=2), sleep=sleep).resolve([A, A, A])
        assert client.urls_called() == [A, A]
        assert len(resolution.failures) == 1

    def test_skipped_urls_are_never_looked_up(self, sleep):
        client = FakeClient({A: TS})
        urls = ["https://cdn.example.com/app.js", "https://web.archive.org/1/http://x/", A]
        resolution = Resolver(client, sleep=sleep).resolve(urls)
        assert client.urls_called() == [A]
        assert resolution.outcomes["https://cdn.example.com/app.js"] is Outcome.SKIPPED
        assert resolution.error() is None

    def test_retry_bound_then_failure(self, sleep):
        client = FakeClient({A: ConnectivityError(A, OSError("reset"))})
        settings = Settings(retries=3, retry_time=5)
        resolution = Resolver(client, settings, sleep=sleep).resolve([A])
        assert client.urls_called() == [A, A, A]
        assert sleep.delays == [5, 5]
        assert A not in resolution.replacements
        assert resolution.outcomes[A] is Outcome.FAILED
        assert [e.url for e in resolution.failures] == [A]

    def test_recovers_on_retry(self, sleep):
        client = FakeClient({A: [NotFoundError(A), TS]})
        resolution = Resolver(client, Settings(retries=2), sleep=sleep).resolve([A])
        assert resolution.replacements == {A: archived(A)}
        assert sleep.delays == [5.0]

    def test_failure_does_not_abort_batch(self, sleep):
        client = FakeClient({A: TS, C: "2021"})
        resolution = Resolver(client, Settings(retries=1), sleep=sleep).resolve([A, B, C])
        assert resolution.replacements == {A: archived(A), C: archived(C, "2021")}
        error = resolution.error()
        assert isinstance(error, AggregateFailureError)
        assert [e.url for e in error] == [B]
        assert B in str(error)

    def test_malformed_response_is_retried_and_recorded(self, sleep):
        bad = MalformedResponseError(A, [["original"], [A]])
        client = FakeClient({A: bad})
        resolution = Resolver(client, Settings(retries=2), sleep=sleep).resolve([A])
        assert len(client.calls) == 2
        assert resolution.failures == [bad]

    def test_from_date_is_passed(self, sleep):
        client = FakeClient({A: TS})
        Resolver(client, Settings(from_date="20200101"), sleep=sleep).resolve([A])
        assert client.calls == [(A, "20200101")]

    def test_outcomes_follow_first_seen_order(self, sleep):
        client = FakeClient({A: TS})
        resolution = Resolver(client, Settings(retries=1), sleep=sleep).resolve(
            [B, "http://x.example/s.js", A, B]
        )
        assert list(resolution.outcomes) == [B, "http://x.example/s.js", A]
        assert list(resolution.outcomes.values()) == [
            Outcome.FAILED, Outcome.SKIPPED, Outcome.RESOLVED,
        ]


class TestParallel:
    def test_matches_sequential(self, sleep):
        results = {A: TS, C: "2021", "http://example.com/d": "2022"}
        urls = [A, B, C, A, "http://example.com/d", B, "http://example.com/e"]

        seq_client = FakeClient(dict(results))
        sequential = Resolver(seq_client, Settings(retries=2), sleep=sleep).resolve(urls)
        par_client = FakeClient(dict(results))
        parallel = Resolver(par_client, Settings(retries=2, jobs=4), sleep=sleep).resolve(urls)

        assert parallel.replacements == sequential.replacements
        assert [e.url for e in parallel.failures] == [e.url for e in sequential.failures]
        assert parallel.outcomes == sequential.outcomes
        assert sorted(par_client.urls_called()) == sorted(seq_client.urls_called())


class TestCancellation:
    def test_cancel_keeps_what_was_resolved(self, sleep):
        token = CancelToken()

        class CancellingClient(FakeClient):
            def lookup(self, url, from_date=None):
                if url == B:
                    token.cancel()
                return super().lookup(url, from_date)

        client = CancellingClient({A: TS})
        resolution = Resolver(client, Settings(retries=3), token=token, sleep=sleep).resolve([A, B, C])

        assert resolution.replacements == {A: archived(A)}
        assert resolution.cancelled
        assert resolution.outcomes[B] is Outcome.CANCELLED
        assert resolution.outcomes[C] is Outcome.CANCELLED
        assert C not in client.urls_called()
        assert resolution.failures == []
        assert any(isinstance(e, CancelledError) for e in resolution.error())

    def test_keyboard_interrupt_cancels(self, sleep):
        client = FakeClient({A: TS, B: KeyboardInterrupt()})
        token = CancelToken()
        resolution = Resolver(client, token=token, sleep=sleep).resolve([A, B, C])
        assert token.cancelled
        assert resolution.cancelled
        assert resolution.replacements == {A: archived(A)}
        assert client.urls_called() == [A, B]

    def test_precancelled_token_looks_nothing_up(self, sleep):
        token = CancelToken()
        token.cancel()
        client = FakeClient({A: TS})
        resolution = Resolver(client, token=token, sleep=sleep).resolve([A, "http://x.example/a.js"])
        assert client.calls == []
        assert resolution.outcomes == {
            A: Outcome.CANCELLED,
            "http://x.example/a.js": Outcome.SKIPPED,
        }

    def test_empty_batch(self):
        resolution = Resolver(FakeClient()).resolve([])
        assert not resolution.cancelled
        assert resolution.error() is None
