"""Tests for the clustering controller state machine."""

import numpy as np
import pytest

from kmeans3d.clustering.controller import (
    AlgorithmState,
    ClusteringController,
    SessionSnapshot,
)
from kmeans3d.config import KMeans3DConfig
from kmeans3d.data.synthetic import UNASSIGNED
from kmeans3d.errors import InvalidTransition, PreconditionError


class TestGenerateData:
    """Tests for the GenerateData transition."""

    def test_generate_sets_initial(self, small_config):
        """Generating data yields INITIAL with the configured count"""
        controller = ClusteringController(small_config)
        snap = controller.generate_data()

        assert snap.state is AlgorithmState.INITIAL
        assert snap.n_points == 60
        assert snap.iteration == 0
        assert len(snap.centroids) == 0
        assert np.all(snap.labels == UNASSIGNED)

    def test_generate_clamps_and_bounds(self, small_config):
        """Requested counts are clamped and points respect the bound"""
        controller = ClusteringController(small_config)
        snap = controller.generate_data(count=5, bound=4.0)
        assert snap.n_points == 10
        assert np.all(np.abs(snap.positions) <= 4.0)

        snap = controller.generate_data(count=100000)
        assert snap.n_points == 1000

    def test_generate_resets_running_run(self, small_config):
        """Regenerating mid-run discards centroids and iteration"""
        controller = ClusteringController(small_config)
        controller.generate_data()
        controller.start_clustering()
        controller.step()

        snap = controller.generate_data()

        assert snap.state is AlgorithmState.INITIAL
        assert snap.iteration == 0
        assert controller.session.centroids == []
        assert controller.session.objective_history == []

    def test_invalid_bound(self, small_config):
        """Non-positive bound is rejected without touching the session"""
        controller = ClusteringController(small_config)
        before = controller.generate_data()
        with pytest.raises(PreconditionError):
            controller.generate_data(bound=0.0)
        np.testing.assert_array_equal(controller.snapshot().positions, before.positions)

    def test_config_count_clamped_on_generate(self, small_config):
        """A count set directly on the config is still clamped"""
        small_config.generator.n_points = 5000
        controller = ClusteringController(small_config)

        snap = controller.generate_data()

        assert snap.n_points == 1000
        assert small_config.generator.n_points == 1000

        small_config.generator.n_points = 3
        assert controller.generate_data().n_points == 10

    @pytest.mark.parametrize("kwargs", [
        {"count": "many", "bound": 50.0},
        {"count": 40, "bound": float("nan")},
        {"count": float("nan"), "bound": 7.0},
    ])
    def test_failed_generate_keeps_config(self, small_config, kwargs):
        """A rejected generate leaves bound, count and points as they were"""
        controller = ClusteringController(small_config)
        before = controller.generate_data()

        with pytest.raises(PreconditionError):
            controller.generate_data(**kwargs)

        assert small_config.generator.bound == 2.0
        assert controller.generator.bound == 2.0
        assert small_config.generator.n_points == 60
        after = controller.snapshot()
        assert after.version == before.version
        np.testing.assert_array_equal(after.positions, before.positions)

    def test_load_points_shape(self):
        """load_points rejects arrays that are not (n, 3)"""
        controller = ClusteringController(KMeans3DConfig(seed=0))
        with pytest.raises(PreconditionError):
            controller.load_points(np.zeros((4, 2)))
        assert controller.snapshot().n_points == 0


class TestStartClustering:
    """Tests for the StartClustering transition."""

    def test_start_labels_all_points(self, small_config):
        """After starting, there are k centroids and every label is in [0, k)"""
        controller = ClusteringController(small_config)
        controller.generate_data()
        snap = controller.start_clustering()

        assert snap.state is AlgorithmState.RUNNING
        assert snap.iteration == 0
        assert snap.k == 3
        assert snap.centroids.shape == (3, 3)
        assert np.all((snap.labels >= 0) & (snap.labels < 3))

    def test_start_without_points(self):
        """Starting with no points fails and stays INITIAL"""
        controller = ClusteringController(KMeans3DConfig(seed=0))
        with pytest.raises(PreconditionError):
            controller.start_clustering()
        assert controller.state is AlgorithmState.INITIAL
        assert controller.session.centroids == []

    def test_start_while_running(self, scenario_controller):
        """A second start during a run is rejected and leaves the run intact"""
        scenario_controller.start_clustering()
        before = scenario_controller.snapshot()

        with pytest.raises(InvalidTransition):
            scenario_controller.start_clustering()

        after = scenario_controller.snapshot()
        assert after.state is AlgorithmState.RUNNING
        assert after.version == before.version
        np.testing.assert_array_equal(after.centroids, before.centroids)

    def test_restart_after_convergence(self, scenario_controller):
        """A converged run can be restarted on the same points"""
        scenario_controller.run_to_convergence()
        snap = scenario_controller.start_clustering()
        assert snap.state is AlgorithmState.RUNNING
        assert snap.iteration == 0
        np.testing.assert_array_equal(snap.centroids, [[0, 0, 0], [10, 0, 0]])

    def test_k_larger_than_points(self):
        """More clusters than points still starts"""
        config = KMeans3DConfig(seed=1)
        config.clustering.n_clusters = 6
        controller = ClusteringController(config)
        controller.load_points(np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 1.0]]))

        snap = controller.start_clustering()

        assert len(snap.centroids) == 6
        assert np.all((snap.labels >= 0) & (snap.labels < 6))

    def test_uniform_policy(self, small_config):
        """Uniform seeding keeps centroids inside the cube"""
        small_config.clustering.init_method = "uniform"
        controller = ClusteringController(small_config)
        controller.generate_data()
        snap = controller.start_clustering()
        assert np.all(np.abs(snap.centroids) <= small_config.generator.bound)


class TestScenario:
    """Four points, two clusters, seeded at x=0 and x=10."""

    def test_full_run(self, scenario_controller):
        """Assign, move to midpoints, then converge on the second step"""
        snap = scenario_controller.start_clustering()
        np.testing.assert_array_equal(snap.labels, [0, 0, 1, 1])

        first = scenario_controller.step()
        assert first.moved is True
        assert first.converged is False
        assert first.iteration == 1
        np.testing.assert_array_almost_equal(
            scenario_controller.snapshot().centroids,
            [[0.0, 0.0, 0.5], [10.0, 0.0, 0.5]],
        )

        second = scenario_controller.step()
        assert second.moved is False
        assert second.converged is True
        assert second.iteration == 2
        assert scenario_controller.state is AlgorithmState.CONVERGED

    def test_objective_after_convergence(self, scenario_controller):
        """Each point ends 0.5 from its centroid"""
        result = scenario_controller.run_to_convergence()
        assert result.objective == pytest.approx(4 * 0.25)

    def test_step_from_initial_starts(self, scenario_controller):
        """Stepping from INITIAL starts the run and performs one step"""
        result = scenario_controller.step()
        assert result.iteration == 1
        assert result.moved is True
        assert scenario_controller.state is AlgorithmState.RUNNING

    def test_step_after_convergence(self, scenario_controller):
        """Stepping a converged run raises and changes nothing"""
        scenario_controller.run_to_convergence()
        before = scenario_controller.snapshot()

        with pytest.raises(InvalidTransition):
            scenario_controller.step()

        after = scenario_controller.snapshot()
        assert after.state is AlgorithmState.CONVERGED
        assert after.iteration == before.iteration == 2
        assert after.version == before.version
        np.testing.assert_array_equal(after.centroids, before.centroids)


class TestResetAndClusterCount:
    """Tests for ResetClustering and changing k."""

    def test_reset_keeps_points(self, small_config):
        """Reset clears centroids and labels but keeps the points"""
        controller = ClusteringController(small_config)
        before = controller.generate_data()
        controller.start_clustering()
        controller.step()

        snap = controller.reset_clustering()

        assert snap.state is AlgorithmState.INITIAL
        assert snap.iteration == 0
        assert len(snap.centroids) == 0
        assert np.all(snap.labels == UNASSIGNED)
        np.testing.assert_array_equal(snap.positions, before.positions)

    def test_k_change_does_not_affect_active_run(self, small_config):
        """A new k applies only on the next start"""
        controller = ClusteringController(small_config)
        controller.generate_data()
        controller.start_clustering()

        controller.set_cluster_count(5)
        result = controller.step()

        snap = controller.snapshot()
        assert snap.k == 3
        assert len(snap.centroids) == 3
        assert np.all(snap.labels < 3)
        assert result.iteration == 1

        controller.reset_clustering()
        snap = controller.start_clustering()
        assert snap.k == 5
        assert len(snap.centroids) == 5

    def test_invalid_cluster_count(self, small_config):
        """k below one is rejected and the configuration is unchanged"""
        controller = ClusteringController(small_config)
        with pytest.raises(PreconditionError):
            controller.set_cluster_count(0)
        assert controller.config.clustering.n_clusters == 3

    def test_k_change_in_initial_updates_snapshot(self, small_config):
        """While INITIAL the snapshot reports the new k"""
        controller = ClusteringController(small_config)
        before = controller.generate_data()
        controller.set_cluster_count(4)
        after = controller.snapshot()
        assert after.k == 4
        assert after.version > before.version


class TestConvergence:
    """Properties of full runs on random data."""

    @pytest.mark.parametrize("seed,k", [(0, 2), (1, 3), (2, 5), (3, 8)])
    def test_objective_non_increasing(self, seed, k):
        """The objective never gets worse from step to step"""
        config = KMeans3DConfig(seed=seed)
        config.generator.n_points = 200
        config.clustering.n_clusters = k
        controller = ClusteringController(config)
        controller.generate_data()
        controller.run_to_convergence()

        history = controller.session.objective_history
        assert len(history) >= 2
        for prev, cur in zip(history, history[1:]):
            assert cur <= prev + 1e-9

    @pytest.mark.parametrize("seed", range(5))
    def test_converges_within_bound(self, seed):
        """Runs on test-scale data converge well before 1000 iterations"""
        config = KMeans3DConfig(seed=seed)
        config.generator.n_points = 300
        config.clustering.n_clusters = 4
        controller = ClusteringController(config)
        controller.generate_data()

        result = controller.run_to_convergence(max_iter=1000)

        assert result.converged
        assert result.iteration < 1000
        assert controller.state is AlgorithmState.CONVERGED

    def test_max_iter_stops_early(self, small_config):
        """run_to_convergence honours the step limit"""
        controller = ClusteringController(small_config)
        controller.generate_data()
        result = controller.run_to_convergence(max_iter=1)
        assert result.iteration == 1

    @pytest.mark.parametrize("max_iter", [0, -3])
    def test_nonpositive_max_iter_rejected(self, small_config, max_iter):
        """A step limit below one is rejected before any step runs"""
        controller = ClusteringController(small_config)
        before = controller.generate_data()

        with pytest.raises(PreconditionError):
            controller.run_to_convergence(max_iter=max_iter)

        assert controller.state is AlgorithmState.INITIAL
        assert controller.snapshot().version == before.version


class TestSnapshot:
    """Tests for the read-only snapshot."""

    def test_arrays_read_only(self, scenario_controller):
        """Snapshot arrays cannot be written"""
        snap = scenario_controller.start_clustering()
        assert isinstance(snap, SessionSnapshot)
        with pytest.raises(ValueError):
            snap.positions[0, 0] = 99.0
        with pytest.raises(ValueError):
            snap.labels[0] = 1

    def test_snapshot_detached_from_session(self, scenario_controller):
        """Later transitions do not alter an earlier snapshot"""
        snap = scenario_controller.start_clustering()
        centroids = snap.centroids.copy()
        scenario_controller.step()
        np.testing.assert_array_equal(snap.centroids, centroids)

    def test_version_increases(self, scenario_controller):
        """Every committed transition bumps the version"""
        v0 = scenario_controller.snapshot().version
        scenario_controller.start_clustering()
        v1 = scenario_controller.snapshot().version
        scenario_controller.step()
        v2 = scenario_controller.snapshot().version
        assert v0 < v1 < v2
