from .config import QueueConfig
from .streams import QueuedJob, RedisStreamsQueue, create_redis_queue
from .worker import ProcessingWorker, generate_consumer_name

__all__ = [
    'QueueConfig',
    'QueuedJob',
    'RedisStreamsQueue',
    'create_redis_queue',
    'ProcessingWorker',
    'generate_consumer_name',
]
