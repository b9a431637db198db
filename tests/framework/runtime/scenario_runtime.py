from dataclasses import dataclass, field
import time

from faultline.cluster import Member

from tests.framework.runtime.cluster_factory import ClusterFactory
from tests.framework.runtime.mock_cluster import MockCluster
from tests.framework.specs.scenario_spec import ScenarioSpec


@dataclass(slots=True)
class ScenarioRuntime:
    spec: ScenarioSpec
    cluster_factory: ClusterFactory = field(default_factory=ClusterFactory)
    cluster: MockCluster | None = None
    selections: dict[str, set[Member]] = field(default_factory=dict)
    errors: dict[str, Exception] = field(default_factory=dict)
    started_at: float = field(default_factory=time.monotonic)

    async def start_cluster(self) -> None:
        if self.cluster:
            raise RuntimeError("Cluster already started")
        self.cluster = await self.cluster_factory.create_cluster(self.spec.cluster)

    async def stop_cluster(self) -> None:
        if not self.cluster:
            return
        await self.cluster_factory.teardown_cluster(self.cluster)
        self.cluster = None

    def require_cluster(self) -> MockCluster:
        if not self.cluster:
            raise RuntimeError("Cluster not started")
        return self.cluster

    def resolve_selection(self, alias: str) -> set[Member]:
        if alias not in self.selections:
            raise ValueError(f"Unknown selection '{alias}'")
        return self.selections[alias]

    def resolve_members(self, params: dict) -> set[Member]:
        cluster = self.require_cluster().cluster
        if alias := params.get("selection"):
            return self.resolve_selection(alias)
        match params.get("role"):
            case None | "all":
                return cluster.get_all_members()
            case "core":
                return self.require_cluster().get_cores()
            case "replica":
                return self.require_cluster().get_replicas()
            case role:
                raise ValueError(f"Unknown role '{role}'")
