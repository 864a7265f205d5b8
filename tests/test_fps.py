from posecam.fps import FpsEstimator, fps_from_latency


def test_fps_is_floor_of_1000_over_latency():
	assert fps_from_latency(40) == 25
	assert fps_from_latency(33) == 30
	assert fps_from_latency(2000) == 0


def test_degenerate_latency_is_withheld():
	assert fps_from_latency(0) is None
	assert fps_from_latency(-5) is None
	assert fps_from_latency(float("nan")) is None


def test_estimator_retains_previous_value():
	est = FpsEstimator()
	assert est.update(40) == 25
	assert est.update(0) is None
	assert est.current == 25
	assert est.update(100) == 10
	assert est.current == 10
