# linkcamp/core/socket_server.py
from flask_socketio import SocketIO

# 프로세스 전체에서 하나만 존재하는 Socket.IO 서버.
# 룸 레지스트리는 이 객체가 소유하며, create_app 에서 init_app 으로 앱에 연결됩니다.
socketio = SocketIO()
