"""Bot Credentials Meta information.
   Bot Credentials stores social-platform secrets encrypted at rest
   and uses them to publish on behalf of registered accounts.
"""
__title__ = 'bot_credentials'
__description__ = (
   'Encrypted storage of social-platform credentials and '
   'publishing on behalf of registered bot accounts.'
)
__version__ = '0.3.0'
__license__ = 'Apache-2.0'
