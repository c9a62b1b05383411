import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma-separated list of origins allowed for HTTP and Socket.IO
    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            'CORS_ALLOWED_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173,http://localhost:5174,http://127.0.0.1:5174',
        ).split(',')
        if origin.strip()
    ]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    # Initial session durations (seconds) unless supplied at creation time
    DEFAULT_WORK_DURATION_SEC = int(os.environ.get('DEFAULT_WORK_DURATION_SEC', '1500'))
    DEFAULT_BREAK_DURATION_SEC = int(os.environ.get('DEFAULT_BREAK_DURATION_SEC', '300'))
    # Tick scheduler interval (seconds); one tick removes one second
    TICK_INTERVAL_SEC = float(os.environ.get('TICK_INTERVAL_SEC', '1.0'))
    # How long an empty session is kept before it is removed (seconds)
    REAP_GRACE_SEC = float(os.environ.get('REAP_GRACE_SEC', '600'))
    SESSION_CODE_LENGTH = int(os.environ.get('SESSION_CODE_LENGTH', '6'))
    # Optional: heartbeat interval for tick loop logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
    ENABLE_SCHEDULER_IN_TESTS = False
