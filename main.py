# main.py
# A bot that assigns Discord roles directly (/assign) or from a Google sign-in (/verify).

import logging
import sys
from threading import Thread

from dotenv import load_dotenv

from sso_role_bot.bot import create_bot, loop_submitter
from sso_role_bot.commands import AssignCommand, CommandDispatcher, VerifyCommand
from sso_role_bot.config import Config
from sso_role_bot.correlation import IdentityCorrelator
from sso_role_bot.errors import ConfigError
from sso_role_bot.flow import VerificationFlow
from sso_role_bot.oauth import GoogleOAuthClient
from sso_role_bot.policy import RolePolicy
from sso_role_bot.reconciler import RoleReconciler
from sso_role_bot.store import IdentityStore
from sso_role_bot.web import create_app

logger = logging.getLogger('sso_role_bot')

# --- Configuration ---

# Load environment variables from a .env file for local testing
load_dotenv()

try:
    config = Config.from_env()
except ConfigError as e:
    logging.basicConfig(level=logging.INFO)
    logger.critical('FATAL ERROR: %s', e)
    logger.critical('Please configure all required secrets in your hosting environment.')
    sys.exit(1)

logging.basicConfig(
    level=config.log_level,
    format='%(asctime)s %(levelname)s %(name)s - %(message)s',
)


# --- Wiring ---

# Discord user ID -> verified Google identity. Lives for the lifetime of the process.
store = IdentityStore()

dispatcher = CommandDispatcher()
bot = create_bot(dispatcher)

flow = VerificationFlow(
    correlator=IdentityCorrelator(),
    oauth=GoogleOAuthClient.from_config(config),
    policy=RolePolicy(),
    reconciler=RoleReconciler(config.role_mapping(), config.verified_role_id),
    store=store,
    guild_lookup=bot.get_guild,
    submit=loop_submitter(bot),
    app_url=config.app_url,
)
dispatcher.register(VerifyCommand(flow))
dispatcher.register(AssignCommand())

app = create_app(flow)


def run_web_server():
    logger.info('Server is running on port %d', config.port)
    app.run(host='0.0.0.0', port=config.port)


if __name__ == "__main__":
    flask_thread = Thread(target=run_web_server)
    flask_thread.daemon = True
    flask_thread.start()
    bot.run(config.discord_token, log_handler=None)
