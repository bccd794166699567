"""Built-in CLI commands for remotely.

* :mod:`~remotely.commands.request` -- ``get``, ``post`` and ``upload``,
  registered directly on the root app.
* :mod:`~remotely.commands.cache` -- ``cache clear`` / ``cache stats``.
* :mod:`~remotely.commands.config` -- ``config show`` / ``config path``.
"""
