"""비즈니스 로직 서비스"""

from .behavior_service import BehaviorService

__all__ = ["BehaviorService"]
