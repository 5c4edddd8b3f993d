"""Tests del debouncer por señal (streak + cooldown).

Ejecutar:
    pytest tests/test_debouncer.py -v
"""

import random

import pytest

from alert_service.alerts.debouncer import SignalDebouncer
from alert_service.alerts.models import COOLDOWN_ACTIVE, Comparator, DecisionKind

from conftest import make_spec


NO_BREACH = DecisionKind.NO_BREACH
BELOW = DecisionKind.BREACH_BELOW_STREAK
SUPPRESSED = DecisionKind.SUPPRESSED
FIRE = DecisionKind.FIRE


# =============================================================================
# ESCENARIO: TEMPERATURA
# =============================================================================

class TestTemperatureScenario:
    """streak=5, cooldown=10s, umbral >= 35.0."""

    def test_fires_on_fifth_consecutive_breach(self):
        debouncer = SignalDebouncer(make_spec())

        kinds = [debouncer.evaluate(36, t / 1000).kind for t in range(5)]

        assert kinds == [BELOW, BELOW, BELOW, BELOW, FIRE]
        assert debouncer.state.last_fire_time == 0.004

    def test_sixth_breach_is_suppressed_then_recovery_resets(self):
        # Sin reset al disparar: el sexto breach ya cumple el streak y cae en cooldown
        debouncer = SignalDebouncer(make_spec(resets_streak_after_fire=False))
        for t in range(5):
            debouncer.evaluate(36, t / 1000)

        sixth = debouncer.evaluate(36, 0.005)
        assert sixth.kind is SUPPRESSED
        assert sixth.reason == COOLDOWN_ACTIVE

        recovered = debouncer.evaluate(30, 0.006)
        assert recovered.kind is NO_BREACH
        assert debouncer.state.consecutive_breach_count == 0

    def test_sixth_breach_restarts_streak_when_fire_resets(self):
        debouncer = SignalDebouncer(make_spec())
        for t in range(5):
            debouncer.evaluate(36, t / 1000)

        sixth = debouncer.evaluate(36, 0.005)

        assert sixth.kind is BELOW
        assert sixth.streak == 1

    def test_streak_progress_is_reported(self):
        debouncer = SignalDebouncer(make_spec())

        streaks = [debouncer.evaluate(40, float(t)).streak for t in range(4)]

        assert streaks == [1, 2, 3, 4]

    def test_threshold_is_inclusive(self):
        debouncer = SignalDebouncer(make_spec(streak_required=1))

        assert debouncer.evaluate(35.0, 0.0).kind is FIRE


# =============================================================================
# RESET DEL STREAK
# =============================================================================

class TestStreakReset:
    """Una lectura normal siempre vuelve el streak a 0."""

    def test_non_breach_resets_mid_streak(self):
        debouncer = SignalDebouncer(make_spec())
        for t in range(3):
            debouncer.evaluate(36, float(t))

        assert debouncer.evaluate(20, 3.0).kind is NO_BREACH
        assert debouncer.evaluate(36, 4.0).streak == 1

    def test_non_breach_resets_while_suppressed(self):
        debouncer = SignalDebouncer(make_spec(resets_streak_after_fire=False))
        for t in range(7):
            debouncer.evaluate(36, t / 1000)
        assert debouncer.state.consecutive_breach_count == 7

        debouncer.evaluate(20, 0.008)

        assert debouncer.state.consecutive_breach_count == 0
        # last_fire_time no se toca
        assert debouncer.state.last_fire_time == 0.004

    def test_fire_resets_streak_when_configured(self):
        debouncer = SignalDebouncer(make_spec(streak_required=2, cooldown_seconds=0))

        kinds = [debouncer.evaluate(36, float(t)).kind for t in range(4)]

        assert kinds == [BELOW, FIRE, BELOW, FIRE]

    def test_fire_keeps_streak_when_not_resetting(self):
        debouncer = SignalDebouncer(
            make_spec(streak_required=2, cooldown_seconds=0, resets_streak_after_fire=False)
        )

        kinds = [debouncer.evaluate(36, float(t)).kind for t in range(4)]

        assert kinds == [BELOW, FIRE, FIRE, FIRE]
        assert debouncer.state.consecutive_breach_count == 4


# =============================================================================
# COOLDOWN
# =============================================================================

class TestCooldown:

    def test_refires_exactly_at_cooldown_without_reset(self):
        """Sin reset del streak, el re-disparo es inmediato al expirar el cooldown."""
        debouncer = SignalDebouncer(make_spec(resets_streak_after_fire=False))
        for t in range(4):
            debouncer.evaluate(36, float(t))
        assert debouncer.evaluate(36, 4.0).kind is FIRE

        for t in range(5, 14):
            assert debouncer.evaluate(36, float(t)).kind is SUPPRESSED

        assert debouncer.evaluate(36, 14.0).kind is FIRE

    def test_refire_with_reset_needs_full_streak_after_cooldown(self):
        debouncer = SignalDebouncer(make_spec(cooldown_seconds=10.0))
        for t in range(5):
            debouncer.evaluate(36, float(t))

        # Streak re-acumulado dentro del cooldown: suprimido
        kinds = [debouncer.evaluate(36, float(t)).kind for t in range(5, 14)]
        assert kinds[:4] == [BELOW] * 4
        assert set(kinds[4:]) == {SUPPRESSED}

        assert debouncer.evaluate(36, 14.0).kind is FIRE

    def test_continuous_breach_fires_twice_exactly_one_cooldown_apart(self):
        """Con reset, streak cumplido antes de expirar → FIRE justo en el cooldown."""
        debouncer = SignalDebouncer(make_spec(streak_required=3, cooldown_seconds=5.0))
        fires = [
            t for t in range(20)
            if debouncer.evaluate(40, float(t)).kind is FIRE
        ]
        assert fires[:2] == [2, 7]

    def test_zero_cooldown_never_suppresses(self):
        debouncer = SignalDebouncer(
            make_spec(streak_required=1, cooldown_seconds=0, resets_streak_after_fire=False)
        )

        kinds = {debouncer.evaluate(40, 1.0).kind for _ in range(5)}

        assert kinds == {FIRE}

    def test_clock_going_backwards_is_suppressed(self):
        debouncer = SignalDebouncer(make_spec(streak_required=1, cooldown_seconds=0))
        debouncer.evaluate(40, 100.0)

        assert debouncer.evaluate(40, 99.0).kind is SUPPRESSED
        assert debouncer.state.last_fire_time == 100.0


# =============================================================================
# COMPARADOR <=
# =============================================================================

class TestLowerBoundSignal:

    def test_lux_low_fires_below_threshold(self):
        debouncer = SignalDebouncer(
            make_spec(name="lux", comparator=Comparator.LTE, threshold=500, streak_required=2)
        )

        assert debouncer.evaluate(600, 0.0).kind is NO_BREACH
        assert debouncer.evaluate(500, 1.0).kind is BELOW
        assert debouncer.evaluate(120, 2.0).kind is FIRE


# =============================================================================
# PROPIEDAD: FIRE ⇔ streak cumplido y cooldown expirado
# =============================================================================

def _reference(spec, events):
    """Modelo de referencia directo, sin estado compartido."""
    count, last_fire, out = 0, None, []
    for breaching, now in events:
        if not breaching:
            count = 0
            out.append(NO_BREACH)
            continue
        count += 1
        if count < spec.streak_required:
            out.append(BELOW)
        elif last_fire is not None and now - last_fire < spec.cooldown_seconds:
            out.append(SUPPRESSED)
        else:
            last_fire = now
            if spec.resets_streak_after_fire:
                count = 0
            out.append(FIRE)
    return out


@pytest.mark.parametrize("seed", range(25))
@pytest.mark.parametrize("resets", [True, False])
def test_fire_iff_streak_met_and_cooldown_elapsed(seed, resets):
    rng = random.Random(seed)
    spec = make_spec(
        streak_required=rng.randint(1, 6),
        cooldown_seconds=rng.choice([0.0, 0.5, 2.0, 7.5]),
        resets_streak_after_fire=resets,
    )
    debouncer = SignalDebouncer(spec)

    now = 0.0
    events = []
    for _ in range(300):
        now += rng.choice([0.0, 0.1, 0.25, 1.0, 3.0])
        events.append((rng.random() < 0.75, now))

    got = []
    for breaching, t in events:
        state_before = debouncer.state
        decision = debouncer.evaluate(40.0 if breaching else 20.0, t)
        got.append(decision.kind)

        if decision.kind is FIRE:
            assert state_before.consecutive_breach_count + 1 >= spec.streak_required
            assert (
                state_before.last_fire_time is None
                or t - state_before.last_fire_time >= spec.cooldown_seconds
            )
        if not breaching:
            assert debouncer.state.consecutive_breach_count == 0

    assert got == _reference(spec, events)
