from affiliate_system.events.handlers import handle_order_completed

__all__ = ['handle_order_completed']
