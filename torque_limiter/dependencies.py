from torque_limiter.state import state


def get_state():
    return state
