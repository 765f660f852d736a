from feeledger.core.auth.models import Actor, ActorRole

__all__ = ["Actor", "ActorRole"]
