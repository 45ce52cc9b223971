#
# DecoPlanner - dive decompression planning engine.
#
# Copyright (C) 2013-2014 by Artur Wroblewski <wrobell@pld-linux.org>
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.
#

"""
DecoPlanner dive decompression engine (stop scheduler).

The engine walks dive waypoints in fixed time steps, loads tissue
compartments with inert gas and schedules the final ascent with
decompression stops, so the ascent ceiling calculated by ascent ceiling
strategy is never violated.

Ascent is performed in legs between decompression stop levels. A leg is
simulated tentatively and committed only if every step of the leg is at
or below the ascent ceiling. Otherwise, a decompression stop is performed
at current depth and the leg is retried.

Each simulated step ticks computation budget. When the budget is exceeded
or the calculation is cancelled, the engine enters aborted state and the
partial plan is discarded.

[mpdfd] Powell, Mark. Deco for Divers, United Kingdom, 2010
"""

from collections import namedtuple
import enum
import math
import logging

from .budget import Budget
from .consumption import GasConsumption
from .error import ConfigError, EngineError, CalculationAborted, \
    PlanWarning, WarningKind
from .flow import tap
from .gas import GasRegistry
from .model import ZH_L16B, GradientFactor
from .oxygen import ExposureMonitor, NO_EXPOSURE
from . import oxygen
from . import const

logger = logging.getLogger(__name__)


class State(enum.Enum):
    """
    Stop scheduler state.
    """
    DESCENDING = 'descending'
    BOTTOM = 'bottom'
    ASCENT_TRANSITION = 'ascent_transition'
    DECO_STOP = 'deco_stop'
    GAS_SWITCH = 'gas_switch'
    SAFETY_STOP = 'safety_stop'
    SURFACED = 'surfaced'
    ABORTED = 'aborted'



class SegmentKind(enum.Enum):
    """
    Dive plan segment kind.

    DESCENT
        Descent to deeper depth.
    BOTTOM
        Constant depth at a waypoint.
    ASCENT
        Ascent to shallower depth.
    DECO_STOP
        Decompression stop. Ascent is not possible until allowed by
        ascent ceiling strategy.
    SAFETY_STOP
        Safety stop of no decompression dive.
    GAS_SWITCH
        Gas mix switch, takes no time.
    """
    DESCENT = 'descent'
    BOTTOM = 'bottom'
    ASCENT = 'ascent'
    DECO_STOP = 'deco_stop'
    SAFETY_STOP = 'safety_stop'
    GAS_SWITCH = 'gas_switch'


STATES = {
    SegmentKind.DESCENT: State.DESCENDING,
    SegmentKind.BOTTOM: State.BOTTOM,
    SegmentKind.ASCENT: State.ASCENT_TRANSITION,
    SegmentKind.DECO_STOP: State.DECO_STOP,
    SegmentKind.SAFETY_STOP: State.SAFETY_STOP,
    SegmentKind.GAS_SWITCH: State.GAS_SWITCH,
}

#: Segment kinds breathed at bottom SAC.
BOTTOM_KINDS = frozenset((SegmentKind.DESCENT, SegmentKind.BOTTOM))


Waypoint = namedtuple(
    'Waypoint', 'depth time cylinder setpoint', defaults=(0, None)
)
Waypoint.__doc__ = """
Dive plan waypoint.

:var depth: Depth of the waypoint [m].
:var time: Duration of the waypoint segment including transition from
    previous depth [min].
:var cylinder: Index of cylinder in gas registry.
:var setpoint: CCR setpoint [bar] or null for open circuit.
"""

Step = namedtuple(
    'Step', 'phase abs_p time rate cylinder gas setpoint data exposure'
)
Step.__repr__ = lambda s: 'Step(phase="{}", abs_p={:.4f}, time={:.4f},' \
    ' gas={})'.format(
        s.phase.value if s.phase else 'start', s.abs_p, s.time, s.gas.name
    )
Step.__doc__ = """
Dive step information.

:var phase: Segment kind of the step, null for the first step.
:var abs_p: Absolute pressure at depth [bar].
:var time: Time of dive [min].
:var rate: Rate of depth change [m/min].
:var cylinder: Index of cylinder in gas registry.
:var gas: Gas mix configuration.
:var setpoint: CCR setpoint [bar] or null for open circuit.
:var data: Tissue state.
:var exposure: Oxygen exposure.
"""

PlanSegment = namedtuple(
    'PlanSegment',
    'kind start_depth end_depth start_time time rate cylinder gas setpoint'
    ' pressures ceiling tissues'
)
PlanSegment.__doc__ = """
Dive plan segment.

:var kind: Segment kind.
:var start_depth: Depth at the start of the segment [m].
:var end_depth: Depth at the end of the segment [m].
:var start_time: Runtime at the start of the segment [min].
:var time: Duration of the segment [min].
:var rate: Rate of depth change [m/min].
:var cylinder: Index of cylinder in gas registry.
:var gas: Gas mix configuration.
:var setpoint: CCR setpoint [bar] or null for open circuit.
:var pressures: Partial pressures of O2, N2 and He at the end of the
    segment [bar].
:var ceiling: Ascent ceiling at the end of the segment [m].
:var tissues: Inert gas pressures of tissue compartments at the end of the
    segment.
"""

Plan = namedtuple(
    'Plan', 'segments exposure warnings cylinders runtime deco_table'
)
Plan.__doc__ = """
Dive plan.

:var segments: List of plan segments.
:var exposure: Oxygen exposure at the end of the dive.
:var warnings: List of advisory warnings ordered by runtime.
:var cylinders: Projected gas usage of each cylinder.
:var runtime: Total runtime of the dive [min].
:var deco_table: Decompression table.
"""

DecoStop = namedtuple('DecoStop', 'depth time')
DecoStop.__doc__ = """
Dive decompression stop information.

:var depth: Depth of decompression stop [m].
:var time: Length of decompression stops [min].
"""


class Engine(object):
    """
    DecoPlanner decompression engine.

    Use decompression engine to calculate dive plan for a list of
    waypoints.

    :var model: Tissue model.
    :var strategy: Ascent ceiling strategy.
    :var gas: Gas registry.
    :var consumption: Gas consumption estimator.
    :var surface_pressure: Surface pressure [bar].
    :var descent_rate: Descent rate [m/min].
    :var ascent_rates: Ascent rate bands, collection of pairs of depth [m]
        and ascent rate [m/min] used when deeper than the depth.
    :var time_delta: Time of simulation step [min].
    :var stop_interval: Distance between decompression stops [m].
    :var last_stop: Depth of last decompression stop [m].
    :var stop_time: Granularity of decompression stop time [min].
    :var switch_at_required_stop: Switch gas mix only at a required
        decompression stop if true.
    :var safety_stop: Perform safety stop on no decompression dives.
    :var max_po2: Maximum pO2 during descent and at the bottom [bar].
    :var max_po2_deco: Maximum pO2 during ascent [bar].
    :var min_po2: Minimum pO2 [bar].
    :var max_iterations: Maximum amount of simulation steps.
    :var max_time: Wall-clock time limit of calculation [s].
    :var pipeline: List of coroutine factories receiving dive steps.
    :var state: Stop scheduler state.
    :var segments: Segments of last calculated plan.
    :var warnings: Warnings of last calculated plan.
    :var deco_table: Decompression table of last calculated plan.
    """
    def __init__(self):
        super().__init__()
        self.model = ZH_L16B()
        self.strategy = GradientFactor()
        self.gas = GasRegistry()
        self.consumption = GasConsumption()

        self.surface_pressure = const.SURFACE_PRESSURE
        self._meter_to_bar = const.METER_TO_BAR

        self.descent_rate = const.DESCENT_RATE
        self.ascent_rates = const.ASCENT_RATES
        self.time_delta = const.TIME_DELTA
        self.stop_interval = const.STOP_INTERVAL
        self.last_stop = const.LAST_STOP
        self.stop_time = const.STOP_TIME
        self.switch_at_required_stop = False
        self.safety_stop = False

        self.max_po2 = const.MAX_PO2
        self.max_po2_deco = const.MAX_PO2_DECO
        self.min_po2 = const.MIN_PO2

        self.max_iterations = const.MAX_ITERATIONS
        self.max_time = const.MAX_TIME
        self.pipeline = []

        self.state = None
        self.segments = []
        self.warnings = []
        self.deco_table = DecoTable()
        self._budget = None


    def set_surface(self, altitude=0, salinity=const.SALINITY_SEA):
        """
        Set surface pressure and water density.

        :param altitude: Altitude of dive site [m].
        :param salinity: Water density [kg/l].
        """
        if salinity <= 0:
            raise ConfigError('Invalid water density {}'.format(salinity))
        p = const.SURFACE_PRESSURE * (1 - 2.25577e-5 * altitude) ** 5.25588
        self.surface_pressure = p
        self._meter_to_bar = salinity * const.GRAVITY / 100
        if __debug__:
            logger.debug('surface pressure {:.4f}bar'.format(p))


    def add_gas(self, o2, he=0, **kw):
        """
        Add cylinder with gas mix to gas registry and return its index.

        :param o2: O2 fraction, i.e. 0.32.
        :param he: Helium fraction, i.e. 0.45.
        :param kw: Cylinder parameters.

        .. seealso:: :func:`decoplanner.gas.GasRegistry.add`
        """
        return self.gas.add(o2, he, **kw)


    def _to_pressure(self, depth):
        """
        Convert depth in meters to absolute pressure in bars.

        :param depth: Depth in meters.
        """
        return depth * self._meter_to_bar + self.surface_pressure


    def _to_depth(self, abs_p):
        """
        Convert absolute pressure to depth.

        :param abs_p: Absolute pressure of depth [bar].
        """
        depth = (abs_p - self.surface_pressure) / self._meter_to_bar
        return round(depth, const.SCALE)


    def _pressure_to_time(self, pressure, rate):
        """
        Convert pressure change into time using depth change rate.

        The returned time is in minutes.

        :param pressure: Pressure change [bar].
        :param rate: Rate of depth change [m/min].
        """
        return pressure / rate / self._meter_to_bar


    def _ascent_rate(self, depth):
        """
        Find ascent rate [m/min] for a depth.

        :param depth: Depth [m].
        """
        for band, rate in self.ascent_rates:
            if depth > band + const.EPSILON:
                return rate
        return self.ascent_rates[-1][1]


    def _po2_limits(self, step):
        """
        Get minimum and maximum partial pressure of oxygen for a dive step.

        :param step: Dive step.
        """
        bottom = step.phase in (None, SegmentKind.DESCENT, SegmentKind.BOTTOM)
        return self.min_po2, (self.max_po2 if bottom else self.max_po2_deco)


    def _next_stop(self, depth, target, safety=False):
        """
        Calculate depth of next stop level during ascent.

        :param depth: Current depth [m].
        :param target: Target depth of the ascent [m].
        :param safety: Include safety stop depth if true.
        """
        k = math.ceil((depth - const.EPSILON) / self.stop_interval) - 1
        level = k * self.stop_interval
        if level < self.last_stop - const.EPSILON:
            level = 0
        if safety and level < const.SAFETY_STOP_DEPTH < depth - const.EPSILON:
            level = const.SAFETY_STOP_DEPTH
        return max(level, target)


    def _step_start(self, waypoint):
        """
        Create the very first dive step at the surface.

        :param waypoint: First waypoint of a dive.
        """
        data = self.model.init(self.surface_pressure)
        gas = self.gas.cylinder(waypoint.cylinder).gas
        return Step(
            None, self.surface_pressure, 0, 0, waypoint.cylinder, gas,
            waypoint.setpoint, data, NO_EXPOSURE
        )


    def _step_next(self, step, time, abs_p, phase, rate):
        """
        Simulate dive step and calculate tissue state and oxygen exposure.

        :param step: Current dive step.
        :param time: Time of the step [min].
        :param abs_p: Absolute pressure at the end of the step.
        :param phase: Segment kind of the step.
        :param rate: Nominal rate of depth change [m/min].
        """
        self._budget.tick()
        p_rate = (abs_p - step.abs_p) / time
        data = self.model.advance(
            step.abs_p, time, step.gas, p_rate, step.data, step.setpoint
        )
        gas, sp = step.gas, step.setpoint
        po2 = (gas.partial_pressures(step.abs_p, sp)[0]
            + gas.partial_pressures(abs_p, sp)[0]) / 2
        exposure = oxygen.accumulate(step.exposure, po2, time)
        return Step(
            phase, abs_p, step.time + time, rate, step.cylinder, gas, sp,
            data, exposure
        )


    def _stay(self, step, time, phase):
        """
        Simulate constant depth part of a dive.

        :param step: Current dive step.
        :param time: Time at current depth [min].
        :param phase: Segment kind of the steps.
        """
        dt = self.time_delta
        n = int(time / dt + const.EPSILON)
        steps = []
        for i in range(n):
            step = self._step_next(step, dt, step.abs_p, phase, 0)
            steps.append(step)
        left = time - n * dt
        if left > const.EPSILON:
            step = self._step_next(step, left, step.abs_p, phase, 0)
            steps.append(step)
        return steps


    def _travel(self, step, abs_p, rate, phase):
        """
        Simulate depth change at constant rate.

        The last step is at the target pressure.

        :param step: Current dive step.
        :param abs_p: Target absolute pressure.
        :param rate: Rate of depth change [m/min].
        :param phase: Segment kind of the steps.
        """
        start_p = step.abs_p
        total = self._pressure_to_time(abs(abs_p - start_p), rate)
        dt = self.time_delta
        n = max(1, math.ceil(total / dt - const.EPSILON))
        steps = []
        for i in range(1, n + 1):
            t = min(dt, total - (i - 1) * dt)
            p = abs_p if i == n else start_p + (abs_p - start_p) * i * dt / total
            step = self._step_next(step, t, p, phase, rate)
            steps.append(step)
        return steps


    def _switch_gas(self, step, cylinder, setpoint):
        """
        Create gas switch dive step.

        :param step: Current dive step.
        :param cylinder: Index of cylinder to switch to.
        :param setpoint: CCR setpoint [bar] or null for open circuit.
        """
        gas = self.gas.cylinder(cylinder).gas
        if __debug__:
            logger.debug('switch to {} at {}m'.format(
                gas.name, self._to_depth(step.abs_p)
            ))
        return step._replace(
            phase=SegmentKind.GAS_SWITCH, rate=0, cylinder=cylinder, gas=gas,
            setpoint=setpoint
        )


    def _best_gas(self, step):
        """
        Find index of the best decompression gas for current depth.

        The best gas is open circuit gas mix with the lowest inert gas
        fraction and partial pressure of oxygen within decompression
        limits. Null is returned if there is no better gas than the current
        one.

        :param step: Current dive step.
        """
        if step.setpoint is not None:
            return None
        candidates = [
            (c.gas.inert, i) for i, c in enumerate(self.gas)
            if i < const.MAX_GAS_MIXES and not c.diluent
            and self.min_po2 - const.EPSILON
                <= c.gas.o2 * step.abs_p
                <= self.max_po2_deco + const.EPSILON
        ]
        if not candidates:
            return None
        inert, k = min(candidates)
        if k == step.cylinder or inert >= step.gas.inert:
            return None
        return k


    def _within_ceiling(self, steps):
        """
        Check if all dive steps are at or below ascent ceiling.

        :param steps: Dive steps.
        """
        ceiling = self.strategy.compute_ceiling
        return all(
            s.abs_p - ceiling(s.data, s.abs_p) > -const.EPSILON for s in steps
        )


    def _staged_ascent(self, start, abs_p, ndl=False, final=False, safety=False):
        """
        Ascend from current depth to target depth in legs between stop
        levels.

        If a leg violates ascent ceiling, then decompression stop is
        performed at current depth. The first decompression stop anchors
        ascent ceiling strategy.

        For no decompression ascent attempt, null is returned when a leg
        violates ascent ceiling.

        :param start: Dive step at the start of the ascent.
        :param abs_p: Absolute pressure of target depth.
        :param ndl: No decompression ascent attempt if true.
        :param final: Final ascent to the surface if true, gas mixes are
            switched automatically.
        :param safety: Perform safety stop if true.
        """
        strategy = self.strategy
        target = self._to_depth(abs_p)
        auto_switch = final and not self.switch_at_required_stop
        anchored = False
        steps = []
        step = start

        while step.abs_p - abs_p > const.EPSILON:
            if auto_switch:
                k = self._best_gas(step)
                if k is not None:
                    step = self._switch_gas(step, k, None)
                    steps.append(step)

            depth = self._to_depth(step.abs_p)
            level = self._next_stop(depth, target, safety)
            leg = self._travel(
                step, self._to_pressure(level), self._ascent_rate(depth),
                SegmentKind.ASCENT
            )
            if self._within_ceiling(leg):
                steps.extend(leg)
                step = leg[-1]
                if safety and abs(level - const.SAFETY_STOP_DEPTH) < const.EPSILON:
                    stay = self._stay(
                        step, const.SAFETY_STOP_TIME, SegmentKind.SAFETY_STOP
                    )
                    steps.extend(stay)
                    step = stay[-1]
                    safety = False
                continue

            if ndl:
                if __debug__:
                    logger.debug('no decompression ascent not possible')
                return None

            if not anchored:
                strategy.first_stop(step.abs_p)
                anchored = True
                logger.info('first decompression stop at {}m'.format(depth))

            if final and self.switch_at_required_stop:
                k = self._best_gas(step)
                if k is not None:
                    step = self._switch_gas(step, k, None)
                    steps.append(step)

            stay = self._stay(step, self.stop_time, SegmentKind.DECO_STOP)
            steps.extend(stay)
            step = stay[-1]

        return steps


    def _final_ascent(self, start, max_depth):
        """
        Ascend to the surface.

        No decompression ascent is tried first with ascent ceiling strategy
        anchored at the surface. If not possible, then staged ascent with
        decompression stops is performed until ascent ceiling strategy
        accepts the schedule.

        :param start: Dive step at the start of the ascent.
        :param max_depth: Maximum depth of the dive [m].
        """
        strategy = self.strategy
        surface = self.surface_pressure
        safety = self.safety_stop and max_depth > const.SAFETY_STOP_MIN_DEPTH

        strategy.start_ascent(start)
        strategy.first_stop(surface)
        steps = self._staged_ascent(start, surface, ndl=True, final=True,
            safety=safety)
        if steps is not None:
            logger.info('no decompression dive')
            return steps

        strategy.start_ascent(start)
        for i in range(const.VPM_MAX_PASSES):
            steps = self._staged_ascent(start, surface, final=True)
            if strategy.end_ascent(steps):
                logger.info('decompression schedule found in {} pass(es)'
                    .format(i + 1))
                return steps
            logger.info('decompression schedule pass {} rejected'.format(i + 1))

        logger.error('decompression schedule did not converge')
        raise CalculationAborted(
            'Decompression calculation aborted due to excessive time'
        )


    def _dive(self, waypoints):
        """
        Calculate dive steps for dive waypoints.

        :param waypoints: Dive waypoints.
        """
        step = self._step_start(waypoints[0])
        yield step

        max_depth = 0
        for wp in waypoints:
            start_time = step.time
            if wp.cylinder != step.cylinder or wp.setpoint != step.setpoint:
                step = self._switch_gas(step, wp.cylinder, wp.setpoint)
                yield step

            abs_p = self._to_pressure(wp.depth)
            if abs_p - step.abs_p > const.EPSILON:
                steps = self._travel(
                    step, abs_p, self.descent_rate, SegmentKind.DESCENT
                )
            elif step.abs_p - abs_p > const.EPSILON:
                self.strategy.start_ascent(step)
                steps = self._staged_ascent(step, abs_p)
            else:
                steps = []
            yield from steps
            step = steps[-1] if steps else step

            t = wp.time - (step.time - start_time)
            if t > const.EPSILON:
                steps = self._stay(step, t, SegmentKind.BOTTOM)
                yield from steps
                step = steps[-1]
            elif __debug__:
                logger.debug('no bottom time left at {}m'.format(wp.depth))

            max_depth = max(max_depth, wp.depth)

        if step.abs_p - self.surface_pressure > const.EPSILON:
            yield from self._final_ascent(step, max_depth)


    def _validate(self, waypoints):
        """
        Validate dive waypoints and engine configuration.

        `ConfigError` is raised on invalid configuration.

        :param waypoints: Dive waypoints.
        """
        self.gas.validate()
        self.strategy.validate()

        if self.time_delta is None or self.time_delta <= 0:
            raise ConfigError(
                'Time delta has to be positive, got {}'.format(self.time_delta)
            )
        rates = [self.descent_rate] + [r for _, r in self.ascent_rates]
        if any(r <= 0 for r in rates):
            raise ConfigError('Descent and ascent rates have to be positive')
        if self.stop_interval <= 0 or self.stop_time <= 0:
            raise ConfigError(
                'Stop interval and stop time have to be positive'
            )

        if not waypoints:
            raise ConfigError('No dive waypoints')

        depth = 0
        max_ascent_rate = max(r for _, r in self.ascent_rates)
        for i, wp in enumerate(waypoints):
            if wp.depth < 0:
                raise ConfigError(
                    'Waypoint {} depth has to be positive'.format(i)
                )
            if wp.time <= 0:
                raise ConfigError(
                    'Waypoint {} duration has to be positive'.format(i)
                )
            c = self.gas.cylinder(wp.cylinder)
            if wp.setpoint is not None and (wp.setpoint <= 0 or not c.diluent):
                raise ConfigError(
                    'Waypoint {} setpoint {} requires diluent cylinder'
                    .format(i, wp.setpoint)
                )
            delta = wp.depth - depth
            rate = self.descent_rate if delta > 0 else max_ascent_rate
            if abs(delta) / rate - wp.time > const.EPSILON:
                raise ConfigError(
                    'Waypoint {} duration shorter than transition to {}m'
                    .format(i, wp.depth)
                )
            depth = wp.depth


    def _segments(self, steps):
        """
        Group dive steps into dive plan segments.

        Consecutive steps of the same kind, cylinder, setpoint and rate
        belong to the same segment. Gas switch is always separate segment.

        :param steps: Dive steps, the first step is the start of a dive.
        """
        key = lambda s: (s.phase, s.cylinder, s.setpoint, s.rate)
        groups = []
        for prev, step in zip(steps, steps[1:]):
            last = groups[-1][-1] if groups else None
            if last is not None and step.phase != SegmentKind.GAS_SWITCH \
                    and key(step) == key(last):
                groups[-1].append(step)
            else:
                groups.append([prev, step])
        return [self._segment(g[0], g[-1]) for g in groups]


    def _segment(self, start, end):
        """
        Create dive plan segment from first and last dive steps.

        :param start: Dive step preceding the segment.
        :param end: Last dive step of the segment.
        """
        ceiling = self.strategy.compute_ceiling(end.data, end.abs_p)
        return PlanSegment(
            end.phase,
            self._to_depth(start.abs_p),
            self._to_depth(end.abs_p),
            start.time,
            end.time - start.time,
            end.rate,
            end.cylinder,
            end.gas,
            end.setpoint,
            end.gas.partial_pressures(end.abs_p, end.setpoint),
            self._to_depth(ceiling),
            end.data.tissues,
        )


    def _gas_warnings(self, steps):
        """
        Create gas registry warnings.

        :param steps: Dive steps.
        """
        used = {s.cylinder for s in steps}
        runtime = steps[-1].time
        warnings = []
        if len(self.gas) > const.MAX_GAS_MIXES:
            warnings.append(PlanWarning(
                WarningKind.TOO_MANY_GASES, 0, 0, None,
                'Too many gas mixes, only first {} are used'
                .format(const.MAX_GAS_MIXES)
            ))
        for i, c in enumerate(self.gas):
            if i not in used:
                warnings.append(PlanWarning(
                    WarningKind.GAS_UNREACHABLE, runtime, 0, c.gas,
                    'Cylinder {} ({}) not used'.format(i, c.gas.name)
                ))
        return warnings


    def calculate(self, waypoints, cancel=None, budget=None):
        """
        Calculate dive plan for dive waypoints.

        Before the calculation the waypoints and engine configuration are
        validated and `ConfigError` is raised on error. When computation
        budget is exceeded or the calculation is cancelled, then the
        engine enters aborted state, the partial plan is discarded and
        `CalculationAborted` is raised. Any other `EngineError`, i.e. from
        ceiling validator, aborts the calculation in the same way.

        :param waypoints: Dive waypoints.
        :param cancel: Cancellation token.
        :param budget: Computation budget.
        """
        waypoints = [Waypoint(*wp) for wp in waypoints]
        self.segments = []
        self.warnings = []
        self.deco_table = DecoTable()
        self._validate(waypoints)

        if budget is None:
            budget = Budget(self.max_iterations, self.max_time, cancel)
        elif cancel is not None:
            budget.cancel = cancel
        self._budget = budget

        logger.info('plan calculation started for {} waypoint(s)'.format(
            len(waypoints)
        ))
        self.strategy.reset(self.model, self.surface_pressure)
        warnings = []
        factories = [ExposureMonitor(self, warnings)] + list(self.pipeline)
        steps = []
        try:
            for step in tap(self._dive(waypoints), *factories):
                if step.phase is not None:
                    self.state = STATES[step.phase]
                steps.append(step)
        except EngineError:
            self.state = State.ABORTED
            self.segments = []
            self.warnings = []
            self.deco_table = DecoTable()
            raise
        finally:
            self._budget = None

        segments = self._segments(steps)
        for s in segments:
            if s.kind == SegmentKind.DECO_STOP:
                self.deco_table.append(s.end_depth, s.time)

        cylinders, gas_warnings = self.consumption.estimate(
            segments, self.gas, self._to_pressure, BOTTOM_KINDS
        )
        warnings.extend(gas_warnings)
        warnings.extend(self._gas_warnings(steps))
        warnings.sort(key=lambda w: w.time)
        for w in warnings:
            logger.warning('{}: {}'.format(w.kind.value, w.message))

        self.segments = segments
        self.warnings = warnings
        self.state = State.SURFACED
        runtime = steps[-1].time
        logger.info('plan calculation finished, runtime {:.1f}min'.format(
            runtime
        ))
        return Plan(
            segments, steps[-1].exposure, warnings, cylinders, runtime,
            self.deco_table
        )



class DecoTable(list):
    """
    Decompression table summary.

    The class is a list of decompression stops. Consecutive stops at the
    same depth are merged.

    The decompression stops time is in minutes.

    .. seealso:: :class:`decoplanner.engine.DecoStop`
    """
    @property
    def total(self):
        """
        Total decompression time.
        """
        return sum(s.time for s in self)


    def append(self, depth, time):
        """
        Add decompression stop.

        :param depth: Depth of decompression stop [m].
        :param time: Time of decompression stop [min].
        """
        time = round(time, const.SCALE)
        if self and abs(self[-1].depth - depth) < const.EPSILON:
            time += self.pop().time
        stop = DecoStop(depth, time)

        assert stop.time > 0
        assert stop.depth > 0

        super().append(stop)
        if __debug__:
            logger.debug('deco table: added {}'.format(stop))


# vim: sw=4:et:ai
