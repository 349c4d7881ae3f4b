"""tools

Leaf executor layer: everything that talks to the outside world (subprocesses,
HTTP inference services) lives here. Scoring code never imports ``tools``
directly; it receives findings through :class:`tools.detectors.DetectorAdapter`.
"""
