"""Navigator Credentials Meta information.
   Navigator Credentials derives, verifies and rotates user credentials
   and keeps the sessions bound to them in sync.
"""
__title__ = 'navigator_credentials'
__description__ = (
   'Navigator Credentials derives and verifies user credentials '
   'and keeps user sessions in sync with them.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/navigator-credentials'
