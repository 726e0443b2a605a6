import os

BASEDIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '3000'))
    QUESTIONS_PATH = os.environ.get('QUESTIONS_PATH') or os.path.join(BASEDIR, 'questions.json')
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173',
        ).split(',')
        if origin.strip()
    ]
    # Round timing (seconds)
    QUESTION_TIME_LIMIT_SEC = int(os.environ.get('QUESTION_TIME_LIMIT_SEC', '30'))
    TIMER_TICK_SEC = float(os.environ.get('TIMER_TICK_SEC', '1'))
    # Pause after a round resolves, before the next-question announcement
    ROUND_END_PAUSE_SEC = float(os.environ.get('ROUND_END_PAUSE_SEC', '1'))
    # Value shown by clients before the next question appears
    NEXT_QUESTION_COUNTDOWN = int(os.environ.get('NEXT_QUESTION_COUNTDOWN', '3'))
    NEXT_QUESTION_DELAY_SEC = float(os.environ.get('NEXT_QUESTION_DELAY_SEC', '2'))
    # Lets in-flight notifications land before the final summary
    GAME_END_DELAY_SEC = float(os.environ.get('GAME_END_DELAY_SEC', '1'))
    STARTING_LIVES = int(os.environ.get('STARTING_LIVES', '3'))
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
