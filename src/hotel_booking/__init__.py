"""
Платформа бронирования номеров в отелях.

Ограниченные контексты:
- booking - сага бронирования
- accommodation - номерной фонд (сервис номеров)
"""
