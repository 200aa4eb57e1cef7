from __future__ import annotations

from app import BACKOFF_MAX_SECONDS, Schedule, run_once
from config import Settings
from reconcile import ReconcileResult

KEY = ("default", "web")


class _Reconciler:
    def __init__(self, results):
        self.results = list(results)
        self.calls = []

    def reconcile(self, namespace, name):
        self.calls.append((namespace, name))
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def _res(generation: int = 1) -> dict:
    return {"metadata": {"name": "web", "namespace": "default", "generation": generation}}


def test_schedule_runs_new_resources_immediately_then_after_requeue() -> None:
    s = Schedule()
    s.observe(KEY, 1, now=100.0)
    assert s.is_due(KEY, 100.0)

    s.succeeded(KEY, 60.0, now=100.0)
    assert not s.is_due(KEY, 150.0)
    assert s.is_due(KEY, 160.0)


def test_schedule_without_requeue_waits_for_a_generation_change() -> None:
    s = Schedule()
    s.observe(KEY, 1, now=0.0)
    s.succeeded(KEY, None, now=0.0)
    s.observe(KEY, 1, now=10_000.0)
    assert not s.is_due(KEY, 10_000.0)

    s.observe(KEY, 2, now=10_001.0)
    assert s.is_due(KEY, 10_001.0)


def test_schedule_backoff_grows_and_is_capped() -> None:
    s = Schedule()
    delays = [s.failed(KEY, now=0.0) for _ in range(10)]
    assert delays[:3] == [5.0, 10.0, 20.0]
    assert delays[-1] == BACKOFF_MAX_SECONDS
    s.succeeded(KEY, 30.0, now=0.0)
    assert s.failed(KEY, now=0.0) == 5.0


def test_run_once_reconciles_due_resources_and_backs_off_on_error(kube) -> None:
    kube.add_botpolicy(_res())
    reconciler = _Reconciler([RuntimeError("boom"), ReconcileResult(requeue_after=3600.0)])
    schedule = Schedule()

    run_once(kube, reconciler, schedule, Settings())
    assert reconciler.calls == [KEY]
    assert schedule.failures[KEY] == 1

    run_once(kube, reconciler, schedule, Settings())
    assert reconciler.calls == [KEY]  # still backing off

    schedule.due[KEY] = 0.0
    run_once(kube, reconciler, schedule, Settings())
    assert reconciler.calls == [KEY, KEY]
    assert KEY not in schedule.failures


def test_run_once_forgets_deleted_resources(kube) -> None:
    kube.add_botpolicy(_res())
    schedule = Schedule()
    run_once(kube, _Reconciler([ReconcileResult()]), schedule, Settings())
    assert KEY in schedule.generation

    kube.botpolicies.clear()
    run_once(kube, _Reconciler([]), schedule, Settings())
    assert KEY not in schedule.generation
