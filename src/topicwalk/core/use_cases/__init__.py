from topicwalk.core.use_cases.read_topic import StreamWalker, WalkConfig, WalkOutput

__all__ = [
    "StreamWalker",
    "WalkConfig",
    "WalkOutput",
]
