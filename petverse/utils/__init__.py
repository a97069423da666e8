from .clock import utcnow, epoch_millis
