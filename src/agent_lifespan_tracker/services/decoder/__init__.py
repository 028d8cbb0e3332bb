"""Raw log decoding."""

from agent_lifespan_tracker.services.decoder.event_decoder import LIFE_EXTENDED_TYPES, EventDecoder

__all__ = ["EventDecoder", "LIFE_EXTENDED_TYPES"]
