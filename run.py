# run.py
from dotenv import load_dotenv
import os

basedir = os.path.abspath(os.path.dirname(__file__))
# 이 파일과 같은 디렉터리의 '.env' 파일을 먼저 로드합니다.
load_dotenv(dotenv_path=os.path.join(basedir, '.env'))

from linkcamp import create_app  # noqa: E402
from linkcamp.core.socket_server import socketio  # noqa: E402

app = create_app()

if __name__ == '__main__':
    host = os.getenv('FLASK_RUN_HOST', '0.0.0.0')
    port = int(os.getenv('PORT', 5001))
    debug = app.config.get('DEBUG', False)
    # HTTP 와 Socket.IO 를 같은 프로세스/포트에서 제공합니다.
    socketio.run(app, host=host, port=port, debug=debug, allow_unsafe_werkzeug=True)
