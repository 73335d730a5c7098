"""
Telegram Bot module for the tarot reading bot.

ARCHITECTURE: webhook -> dispatcher -> command handler
- Receives webhook updates from Telegram (main.py)
- Filters by designated chat, routes by command prefix (dispatcher.py)
- Handlers call the reading store, the AI reading generator and the
  Telegram gateway through a BotContext built once at startup (bot.py)

Nothing is imported here: services log through logging_config, and an
eager import of bot.py would pull them back in while they load.
"""
