"""
Pytest configuration for line_login. Channel settings for line_login.main come from env,
so set them before any test imports the sample app.
"""
import os

os.environ["LINE_LOGIN_CHANNEL_ID"] = "1234567890"
os.environ["LINE_LOGIN_CHANNEL_SECRET"] = "0123456789abcdef0123456789abcdef"
os.environ["LINE_LOGIN_CALLBACK_URL"] = "http://testserver/login/callback"
for _name in (
    "LINE_LOGIN_SCOPE",
    "LINE_LOGIN_PROMPT",
    "LINE_LOGIN_BOT_PROMPT",
    "LINE_LOGIN_VERIFY_ID_TOKEN",
    "LINE_LOGIN_TIMEOUT",
    "LINE_LOGIN_ID_TOKEN_LEEWAY",
):
    os.environ.pop(_name, None)
