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
DecoPlanner data flow functions and coroutines.

Dive steps calculated by decompression engine are passed through a
pipeline of coroutines, i.e. ceiling validator or oxygen exposure monitor.
"""

from functools import wraps


def coroutine(func):
    """
    Decorator for a coroutine function.

    Advances a coroutine to its first ``(yield)`` statement.
    """
    @wraps(func)
    def start(*args, **kwargs):
        cr = func(*args, **kwargs)
        next(cr)
        return cr
    return start


@coroutine
def broadcast(*targets):
    """
    Coroutine to receive a value and send it to all target coroutines.

    :param targets: List of target coroutines.
    """
    while True:
        v = yield
        for c in targets:
            c.send(v)


def tap(data, *factories):
    """
    Iterate over data and send each item to coroutines.

    The coroutines are created by calling functions from `factories` list
    when the iteration starts. An item is yielded after all coroutines
    received it, so an exception raised by a coroutine stops the
    iteration.

    :param data: Iterable of items, i.e. dive steps.
    :param factories: List of functions creating coroutines.
    """
    target = broadcast(*[f() for f in factories])
    for v in data:
        target.send(v)
        yield v


# vim: sw=4:et:ai
