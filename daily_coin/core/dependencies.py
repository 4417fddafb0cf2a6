# daily_coin/core/dependencies.py

from fastapi import Request

# services are built once in the lifespan and kept on app.state


def get_coin_service(request: Request):
    return request.app.state.coin_service


def get_hot_question_service(request: Request):
    return request.app.state.hot_question_service
