"""Knowledge Interfaces Layer - HTTP routers."""

from campusdesk.knowledge.interfaces.controllers import chatbot_router, knowledge_router

__all__ = ["knowledge_router", "chatbot_router"]
