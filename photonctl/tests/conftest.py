import pytest

from photonctl.modules.models import Cluster, Entity, Task, TaskState


class FakeClock:
    """Monotonic clock that only moves when sleep() is called."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class ScriptedClient:
    """Returns queued results in order; the last one repeats forever."""

    def __init__(self, tasks=(), clusters=()):
        self.tasks = list(tasks)
        self.clusters = list(clusters)
        self.task_fetches = 0
        self.cluster_fetches = 0

    @staticmethod
    def _next(results):
        item = results.pop(0) if len(results) > 1 else results[0]
        if isinstance(item, Exception):
            raise item
        return item

    def get_task(self, task_id):
        self.task_fetches += 1
        return self._next(self.tasks)

    def get_cluster(self, cluster_id):
        self.cluster_fetches += 1
        return self._next(self.clusters)


class RecordingReporter:
    """Stands in for ProgressReporter and records its lifecycle."""

    def __init__(self, stop_event):
        self.stop_event = stop_event
        self.started = False
        self.stop_calls = 0
        self.stopped_with_event_set = False

    def start(self):
        self.started = True

    def stop(self):
        self.stop_calls += 1
        self.stopped_with_event_set = self.stop_event.is_set()


def cluster(state, cluster_id="c1"):
    return Cluster.from_dict({"id": cluster_id, "name": "demo", "type": "KUBERNETES", "state": state})


def task(state, task_id="t1", entity_id="c1"):
    return Task(id=task_id, state=TaskState.parse(state), operation="CREATE_CLUSTER",
                entity=Entity(id=entity_id, kind="cluster"))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def reporters():
    created = []

    def factory(stop_event):
        reporter = RecordingReporter(stop_event)
        created.append(reporter)
        return reporter

    factory.created = created
    return factory
