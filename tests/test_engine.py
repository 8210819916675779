import logging

import pytest

from imagetoolkit.compression import (
    CompressorConfig,
    ContentHint,
    LoggingProgress,
    RecordingProgress,
    SmartCompressor,
    Strategy,
)
from imagetoolkit.errors import EncoderError, SizeProbeError

SOURCE = 'source'


class ModelEncoder:
    """Fake encoder returning ('encoded', quality) handles."""

    def __init__(self):
        self.calls = []

    def compress(self, source, quality):
        self.calls.append(quality)
        return ('encoded', quality)


class ModelProbe:
    """Sizes follow original_kb * (Q/100)^2 unless a model is given."""

    def __init__(self, original_kb=500, model=None):
        self.original_kb = original_kb
        self.model = model or (lambda q: original_kb * (q / 100) ** 2)

    def size_of(self, handle):
        if handle == SOURCE:
            return int(self.original_kb * 1024)
        return int(self.model(handle[1]) * 1024)


def make_compressor(original_kb=500, model=None, config=None):
    encoder = ModelEncoder()
    compressor = SmartCompressor(encoder, ModelProbe(original_kb, model), config)
    return compressor, encoder


def test_short_circuit_when_source_fits_target():
    compressor, encoder = make_compressor(original_kb=50)
    progress = RecordingProgress()

    result = compressor.compress(SOURCE, target_size_kb=100, on_progress=progress)

    assert result.quality == 100
    assert result.size_bytes == 50 * 1024
    assert result.image == SOURCE
    assert result.short_circuited
    assert encoder.calls == []
    assert progress.attempts == []


def test_target_search_converges_to_highest_fitting_quality():
    compressor, encoder = make_compressor(original_kb=500)
    progress = RecordingProgress()

    result = compressor.compress(SOURCE, target_size_kb=100, on_progress=progress)

    assert result.quality == 44
    assert result.size_bytes <= 100 * 1024
    assert not result.used_fallback
    assert result.iterations <= 10
    assert encoder.calls == [55, 32, 43, 49, 46, 44, 45]
    assert progress.attempts == [(q, i + 1) for i, q in enumerate(encoder.calls)]


def test_target_never_returns_oversized_accepted_candidate():
    for target in (30, 75, 150, 260, 499):
        compressor, _ = make_compressor(original_kb=500)
        result = compressor.compress(SOURCE, target_size_kb=target)
        assert result.used_fallback or result.size_bytes <= target * 1024


def test_unreachable_target_falls_back_to_default_quality():
    compressor, encoder = make_compressor(original_kb=500, model=lambda q: 400)

    result = compressor.compress(SOURCE, target_size_kb=100)

    assert result.used_fallback
    assert result.quality == 80
    assert encoder.calls[-1] == 80
    assert result.iterations <= 10


def test_fallback_uses_configured_default_quality():
    config = CompressorConfig(default_quality=65)
    compressor, _ = make_compressor(original_kb=500, model=lambda q: 400, config=config)

    result = compressor.compress(SOURCE, target_size_kb=100)

    assert result.quality == 65


def test_crossed_initial_bounds_run_no_attempts():
    compressor, encoder = make_compressor()
    hint = ContentHint(Strategy.SIZE_PRIORITY, suggested_quality=5)
    progress = RecordingProgress()

    result = compressor.compress(SOURCE, on_progress=progress, hint=hint)

    assert result is not None
    assert result.used_fallback
    assert result.quality == 5
    assert result.iterations == 0
    assert progress.attempts == []
    assert encoder.calls == [5]


def test_balanced_heuristic_without_hint():
    compressor, encoder = make_compressor()

    result = compressor.compress(SOURCE)

    assert encoder.calls == [55, 78, 66, 72, 69, 70, 71]
    assert result.quality == 71
    assert result.strategy is Strategy.BALANCED
    assert result.iterations == 7


def test_quality_priority_without_acceptance_uses_hint_quality():
    compressor, encoder = make_compressor()
    hint = ContentHint(Strategy.QUALITY_PRIORITY, suggested_quality=85)

    result = compressor.compress(SOURCE, hint=hint)

    assert encoder.calls == [82, 75, 72, 70, 85]
    assert result.used_fallback
    assert result.quality == 85
    assert result.size_bytes == int(500 * 0.85 ** 2 * 1024)


def test_size_priority_keeps_last_attempt():
    compressor, encoder = make_compressor()
    hint = ContentHint(Strategy.SIZE_PRIORITY, suggested_quality=60)

    result = compressor.compress(SOURCE, hint=hint)

    assert encoder.calls == [35, 48, 54, 57, 55]
    assert result.quality == 55
    assert not result.used_fallback


def test_heuristic_search_stops_at_seven_attempts():
    # Always below half the original, so every attempt raises the floor
    compressor, encoder = make_compressor(model=lambda q: 100)

    result = compressor.compress(SOURCE)

    assert encoder.calls == [55, 78, 89, 95, 98, 99, 100]
    assert result.iterations == 7


def test_heuristic_budget_from_config():
    config = CompressorConfig(heuristic_iterations=4)
    compressor, encoder = make_compressor(model=lambda q: 100, config=config)

    compressor.compress(SOURCE)

    assert encoder.calls == [55, 78, 89, 95]


def test_target_budget_from_config():
    config = CompressorConfig(target_iterations=3)
    compressor, encoder = make_compressor(config=config)

    compressor.compress(SOURCE, target_size_kb=100)

    assert len(encoder.calls) == 3


def test_repeated_calls_are_deterministic():
    first, first_encoder = make_compressor()
    second, second_encoder = make_compressor()
    hint = ContentHint(Strategy.BALANCED, suggested_quality=75)

    a = first.compress(SOURCE, target_size_kb=120, hint=hint)
    b = second.compress(SOURCE, target_size_kb=120, hint=hint)

    assert (a.quality, a.size_bytes) == (b.quality, b.size_bytes)
    assert first_encoder.calls == second_encoder.calls


def test_plain_callback_receives_progress():
    compressor, encoder = make_compressor()
    seen = []

    compressor.compress(SOURCE, target_size_kb=100, on_progress=lambda q, n: seen.append((q, n)))

    assert [q for q, _ in seen] == encoder.calls
    assert [n for _, n in seen] == list(range(1, len(seen) + 1))


def test_invalid_progress_type_rejected():
    compressor, _ = make_compressor()
    with pytest.raises(TypeError):
        compressor.compress(SOURCE, on_progress=42)


def test_encoder_failure_propagates():
    class FailingEncoder:
        def compress(self, source, quality):
            raise EncoderError("codec exploded")

    compressor = SmartCompressor(FailingEncoder(), ModelProbe())
    with pytest.raises(EncoderError):
        compressor.compress(SOURCE, target_size_kb=100)


def test_probe_failure_propagates():
    class FailingProbe:
        def size_of(self, handle):
            raise SizeProbeError("gone")

    compressor = SmartCompressor(ModelEncoder(), FailingProbe())
    with pytest.raises(SizeProbeError):
        compressor.compress(SOURCE)


def test_compress_at_quality_single_encode():
    compressor, encoder = make_compressor()

    result = compressor.compress_at_quality(SOURCE, 50)

    assert encoder.calls == [50]
    assert result.quality == 50
    assert result.size_bytes == int(500 * 0.25 * 1024)
    assert result.compression_ratio == pytest.approx(0.75)


def test_result_to_dict_shape():
    compressor, _ = make_compressor(original_kb=50)
    result = compressor.compress(SOURCE, target_size_kb=100)

    assert result.to_dict() == {'path': SOURCE, 'quality': 100, 'size': 50 * 1024}


def test_logging_progress_writes_attempts(caplog):
    caplog.set_level(logging.INFO, logger='imagetoolkit')
    compressor, encoder = make_compressor()

    compressor.compress(SOURCE, target_size_kb=100, on_progress=LoggingProgress())

    attempts = [r.getMessage() for r in caplog.records if r.getMessage().startswith('Attempt')]
    assert attempts[0] == "Attempt 1: trying quality 55"
    assert len(attempts) == len(encoder.calls)
