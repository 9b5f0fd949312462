"""FlowTrack: task and file records backed by the hosted Apper backend."""

__version__ = "0.1.0"
