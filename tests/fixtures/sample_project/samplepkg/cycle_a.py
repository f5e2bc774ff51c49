from samplepkg import cycle_b


def ping():
    return cycle_b.pong()
