# web.py
# HTTP side of /verify: sends the user to Google and receives them back.

import logging

from flask import Flask, jsonify, redirect, request
from werkzeug.exceptions import HTTPException

from .errors import IdentityProviderError, ValidationError

logger = logging.getLogger(__name__)

FAILURE_PAGE = 'Authentication failed. Please try again.'


def create_app(flow) -> Flask:
    app = Flask(__name__)

    @app.route('/')
    def health_check():
        return jsonify({'status': 'ok'}), 200

    @app.route('/auth/login')
    def login():
        user_id = request.args.get('userId')
        guild_id = request.args.get('guildId')
        return redirect(flow.authorization_url(user_id, guild_id))

    @app.route('/auth/callback')
    def oauth_callback():
        if request.args.get('error'):
            logger.warning('Google returned an error: %s', request.args['error'])
            return redirect('/auth/failure')

        code = request.args.get('code')
        if not code:
            return redirect('/auth/failure')

        try:
            result = flow.complete(request.args.get('state'), code)
        except IdentityProviderError:
            return redirect('/auth/failure')
        return result.message, result.status_code

    @app.route('/auth/failure')
    def failure():
        return FAILURE_PAGE, 200

    @app.errorhandler(ValidationError)
    def _validation_error(error):
        return str(error), 400

    @app.errorhandler(Exception)
    def _unexpected_error(error):
        if isinstance(error, HTTPException):
            return error
        logger.exception('Error in %s', request.path)
        return 'An error occurred during authentication.', 500

    return app
