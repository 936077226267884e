# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Base exception hierarchy for :mod:`graphwire`."""

from __future__ import annotations


class GraphwireError(Exception):
    """Base class for all graphwire exceptions.

    This class serves as the root of the exception hierarchy, allowing callers
    to catch all library-specific exceptions with a single handler while letting
    standard Python exceptions propagate normally.

    Example:
        Catch any graphwire-specific error during startup::

            try:
                container.initialize(descriptors)
            except GraphwireError as e:
                logger.error("Container failed to start: %s", e)
                raise

    Note:
        Subclasses may also inherit from standard exception types (e.g.,
        ``LookupError``, ``RuntimeError``) to enable more specific handling
        when needed.
    """


__all__ = ["GraphwireError"]
