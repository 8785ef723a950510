"""Mock web application and Keycloak realm for login probe tests.

Two Flask apps that talk to each other the way the real deployment does:

web app (the application under test)
- ``/``                                 landing page with the login trigger,
                                        or redirect to ``/prescriptions`` when logged in
- ``/oauth2/authorization/keycloak``    redirect to the provider's auth endpoint
- ``/login/oauth2/code/keycloak``       callback; exchanges the code, redirects to ``/``
- ``/prescriptions``                    authenticated page with logout button and username
- ``/login``                            login page (``?error`` / ``?logout``)
- ``/logout`` (POST)                    clears the session, redirects to end-session

provider (realm ``nll-light``)
- ``/realms/nll-light/protocol/openid-connect/auth``     login form (``#kc-form-login``)
- ``/realms/nll-light/login-actions/authenticate``       credential check, redirect with code
- ``/realms/nll-light/protocol/openid-connect/logout``   redirect to post_logout_redirect_uri
- ``/resources/js/trim-inputs.js``                       the packaged trimming script

Behaviour switches live in ``app.config`` so a test can flip them on a
running server:
- web ``ROOT_REDIRECT``: anonymous ``/`` redirects to ``/login``
- web ``SHOW_MARKERS``: render logout button and username after login
- web ``LOGOUT_REDIRECT``: send ``/logout`` on to the provider's end-session endpoint
- provider ``TRIM_SCRIPT``: include the trimming script in the login page
"""
from __future__ import annotations

import secrets
from typing import Dict, List
from urllib.parse import urlencode

from flask import Flask, Response, redirect, request, session, url_for
from markupsafe import escape

from nll_login_probe.trim_inputs import trim_script_source

REALM = "nll-light"
CLIENT_ID = "medication-web"

MOCK_USERS: Dict[str, str] = {"user666": "secret"}
INVALID_CREDENTIALS_MESSAGE = "Ogiltigt användarnamn eller lösenord."

# Mock data storage
ISSUED_CODES: Dict[str, str] = {}  # code -> username
SUBMISSIONS: List[Dict[str, str]] = []  # credentials as received by the provider


def reset_mock_state() -> None:
    ISSUED_CODES.clear()
    SUBMISSIONS.clear()


def _page(title: str, body: str, head: str = "") -> str:
    return (
        "<!DOCTYPE html><html lang=\"sv\"><head><meta charset=\"utf-8\">"
        f"<title>{escape(title)}</title>{head}</head><body>{body}</body></html>"
    )


def create_mock_web_app(provider_url: str = "") -> Flask:
    """Create the mock application that delegates login to the provider."""
    app = Flask(__name__)
    app.config['TESTING'] = True
    app.config['SECRET_KEY'] = secrets.token_hex(16)
    # Both servers run on 127.0.0.1; cookies ignore the port
    app.config['SESSION_COOKIE_NAME'] = 'JSESSIONID'
    app.config['PROVIDER_URL'] = provider_url
    app.config['ROOT_REDIRECT'] = False
    app.config['SHOW_MARKERS'] = True
    app.config['LOGOUT_REDIRECT'] = True

    login_trigger = '<a id="login-link" href="/oauth2/authorization/keycloak">Logga in med Keycloak</a>'

    @app.route('/')
    def index():
        if session.get('user'):
            return redirect('/prescriptions')
        if app.config['ROOT_REDIRECT']:
            return redirect('/login')
        return _page("NLL Light", f"<h1>NLL Light</h1><p>{login_trigger}</p>")

    @app.route('/login')
    def login():
        notice = ""
        if 'error' in request.args:
            notice = '<p class="error">Inloggning misslyckades. Kontrollera dina uppgifter och försök igen.</p>'
        elif 'logout' in request.args:
            notice = '<p class="info">Du har loggats ut.</p>'
        return _page("Logga in", f"<h1>Logga in</h1>{notice}<p>{login_trigger}</p>")

    @app.route('/oauth2/authorization/keycloak')
    def authorize():
        state = secrets.token_urlsafe(12)
        session['oauth_state'] = state
        query = urlencode({
            'response_type': 'code',
            'client_id': CLIENT_ID,
            'redirect_uri': url_for('callback', _external=True),
            'state': state,
        })
        return redirect(f"{app.config['PROVIDER_URL']}/realms/{REALM}/protocol/openid-connect/auth?{query}")

    @app.route('/login/oauth2/code/keycloak')
    def callback():
        state = request.args.get('state')
        code = request.args.get('code', '')
        if not state or state != session.pop('oauth_state', None):
            return redirect('/login?error')
        username = ISSUED_CODES.pop(code, None)
        if username is None:
            return redirect('/login?error')
        session['user'] = username
        return redirect('/')

    @app.route('/prescriptions')
    def prescriptions():
        username = session.get('user')
        if not username:
            return redirect('/login')
        header = ""
        if app.config['SHOW_MARKERS']:
            header = (
                f'<nav><span class="user">{escape(username)}</span>'
                '<form method="post" action="/logout"><button type="submit">Logga ut</button></form></nav>'
            )
        return _page("Mina recept", f"{header}<h1>Mina recept</h1><p>Inga aktiva recept.</p>")

    @app.route('/logout', methods=['POST'])
    def logout():
        session.clear()
        if not app.config['LOGOUT_REDIRECT']:
            return _page("Utloggad", "<h1>Utloggad</h1>")
        query = urlencode({'post_logout_redirect_uri': url_for('login', _external=True) + '?logout'})
        return redirect(f"{app.config['PROVIDER_URL']}/realms/{REALM}/protocol/openid-connect/logout?{query}")

    return app


def create_mock_provider_app() -> Flask:
    """Create the mock identity provider serving the login form."""
    app = Flask(__name__)
    app.config['TESTING'] = True
    app.config['SECRET_KEY'] = secrets.token_hex(16)
    app.config['SESSION_COOKIE_NAME'] = 'KEYCLOAK_SESSION'
    app.config['TRIM_SCRIPT'] = True

    def render_login_form(redirect_uri: str, state: str, error: str | None = None, status: int = 200):
        head = '<script src="/resources/js/trim-inputs.js"></script>' if app.config['TRIM_SCRIPT'] else ""
        feedback = f'<span id="input-error" class="kc-feedback-text">{escape(error)}</span>' if error else ""
        body = (
            '<h1 id="kc-page-title">Logga in på ditt konto</h1>'
            f'{feedback}'
            f'<form id="kc-form-login" method="post" action="/realms/{REALM}/login-actions/authenticate">'
            '<label for="username">Användarnamn</label>'
            '<input id="username" name="username" type="text" autofocus>'
            '<label for="password">Lösenord</label>'
            '<input id="password" name="password" type="password">'
            f'<input type="hidden" name="redirect_uri" value="{escape(redirect_uri)}">'
            f'<input type="hidden" name="state" value="{escape(state)}">'
            '<button id="kc-login" type="submit">Logga in</button>'
            '</form>'
        )
        return _page("Logga in på nll-light", body, head), status

    @app.route(f'/realms/{REALM}/protocol/openid-connect/auth')
    def auth():
        redirect_uri = request.args.get('redirect_uri')
        if not redirect_uri or request.args.get('client_id') != CLIENT_ID:
            return _page("Fel", "<p>Invalid parameter: redirect_uri</p>"), 400
        return render_login_form(redirect_uri, request.args.get('state', ''))

    @app.route(f'/realms/{REALM}/login-actions/authenticate', methods=['POST'])
    def authenticate():
        username = request.form.get('username', '')
        password = request.form.get('password', '')
        redirect_uri = request.form.get('redirect_uri', '')
        state = request.form.get('state', '')
        SUBMISSIONS.append({'username': username, 'password': password})

        if MOCK_USERS.get(username) != password:
            return render_login_form(redirect_uri, state, INVALID_CREDENTIALS_MESSAGE)

        code = secrets.token_urlsafe(16)
        ISSUED_CODES[code] = username
        return redirect(f"{redirect_uri}?{urlencode({'code': code, 'state': state})}")

    @app.route(f'/realms/{REALM}/protocol/openid-connect/logout')
    def end_session():
        target = request.args.get('post_logout_redirect_uri')
        if not target:
            return _page("Utloggad", "<p>Du har loggats ut.</p>")
        return redirect(target)

    @app.route('/resources/js/trim-inputs.js')
    def trim_script():
        return Response(trim_script_source(), mimetype='application/javascript')

    return app
