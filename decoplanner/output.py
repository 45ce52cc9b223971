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
DecoPlanner dive plan output.

Dive plan segments are converted into

- profile samples, which can be used to chart a dive profile
- textual dive plan with oxygen exposure and gas consumption summary and
  warnings

Example of textual dive plan::

    Transition to 40m at rate 20m/min - runtime 2:00 on Air
    Stay at 40m for 28:00 - runtime 30:00 on Air
    Transition to 9m at rate 10m/min - runtime 33:06 on Air
    Stay at 9m for 1:00 - runtime 34:06 on Air (deco stop)
    ...
"""

import logging
from collections import namedtuple

from .engine import SegmentKind

logger = logging.getLogger(__name__)

ProfileSample = namedtuple(
    'ProfileSample', 'time depth po2 pn2 phe ceiling tissues kind'
)
ProfileSample.__doc__ = """
Dive profile sample.

:var time: Runtime [min].
:var depth: Depth [m].
:var po2: Partial pressure of O2 [bar].
:var pn2: Partial pressure of N2 [bar].
:var phe: Partial pressure of He [bar].
:var ceiling: Ascent ceiling [m].
:var tissues: Inert gas pressures of tissue compartments.
:var kind: Kind of segment ending at the sample.
"""


def profile(segments):
    """
    Convert dive plan segments into dive profile samples.

    The first sample is the start of the dive, then there is one sample per
    segment end.

    :param segments: Dive plan segments.
    """
    if not segments:
        raise ValueError('No dive plan segments')

    first = segments[0]
    samples = [ProfileSample(
        first.start_time, first.start_depth, None, None, None, None, None,
        None
    )]
    for s in segments:
        po2, pn2, phe = s.pressures
        samples.append(ProfileSample(
            s.start_time + s.time, s.end_depth, po2, pn2, phe, s.ceiling,
            s.tissues, s.kind
        ))
    return samples


def format_time(time):
    """
    Format time in minutes as `M:SS` string.

    :param time: Time [min].
    """
    s = int(round(time * 60))
    return '{}:{:02d}'.format(s // 60, s % 60)


def format_depth(depth):
    return '{:g}m'.format(round(depth, 1) + 0.0)


def _gas(s):
    text = s.gas.name
    if s.setpoint is not None:
        text += ' (SP = {:.1f}bar)'.format(s.setpoint)
    return text


def _transition(s):
    return 'Transition to {} at rate {:g}m/min - runtime {} on {}'.format(
        format_depth(s.end_depth), s.rate, format_time(s.start_time + s.time),
        _gas(s)
    )


def _stay(s, note=None):
    line = 'Stay at {} for {} - runtime {} on {}'.format(
        format_depth(s.end_depth), format_time(s.time),
        format_time(s.start_time + s.time), _gas(s)
    )
    if note:
        line += ' ({})'.format(note)
    return line


FORMATTERS = {
    SegmentKind.DESCENT: _transition,
    SegmentKind.ASCENT: _transition,
    SegmentKind.BOTTOM: _stay,
    SegmentKind.DECO_STOP: lambda s: _stay(s, 'deco stop'),
    SegmentKind.SAFETY_STOP: lambda s: _stay(s, 'safety stop'),
    SegmentKind.GAS_SWITCH: lambda s: _stay(s, 'gas switch'),
}


def render(segments, exposure, warnings, cylinders=()):
    """
    Render textual dive plan.

    Each segment is rendered as transition or stay line. The segment lines
    are followed by oxygen exposure summary, gas consumption summary and
    warnings.

    :param segments: Dive plan segments.
    :param exposure: Oxygen exposure at the end of the dive.
    :param warnings: Dive plan warnings.
    :param cylinders: Gas usage of cylinders.
    """
    if not segments:
        raise ValueError('No dive plan segments')

    lines = [FORMATTERS[s.kind](s) for s in segments]
    lines.append('')
    lines.append('CNS: {:.0f}%'.format(exposure.cns))
    lines.append('OTU: {:.0f}'.format(exposure.otu))
    for c in cylinders:
        lines.append(
            'Gas: cylinder {} {} used {:.0f}l, {:.0f}bar -> {:.0f}bar'.format(
                c.cylinder, c.gas.name, c.volume, c.start_pressure,
                c.end_pressure
            )
        )
    for w in warnings:
        lines.append('Warning: {} at {}, runtime {}'.format(
            w.message, format_depth(w.depth), format_time(w.time)
        ))

    if __debug__:
        logger.debug('rendered {} segments'.format(len(segments)))
    return '\n'.join(lines)


# vim: sw=4:et:ai
