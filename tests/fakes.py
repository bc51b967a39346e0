class FakeCamera:
    def __init__(self, image=b'jpeg-bytes', error=None):
        self.image = image
        self.error = error
        self.captures = 0

    def is_ready(self):
        return True

    def capture_still(self):
        self.captures += 1
        if self.error:
            raise self.error
        return self.image


class FakeClassifier:
    def __init__(self, result=('background', 0.61), ready=True, error=None, gate=None):
        self.result = result
        self.ready = ready
        self.error = error
        self.gate = gate
        self.images = []

    def is_ready(self):
        return self.ready

    def load(self):
        self.ready = True

    def classify(self, image):
        self.images.append(image)
        if self.gate is not None:
            self.gate.wait()
        if self.error:
            raise self.error
        return self.result


class FakeConnection:
    def __init__(self):
        self.sent = []

    def send(self, command):
        self.sent.append(command)
        return True


class FakeLink:
    def __init__(self, devices=('/dev/ttyUSB0',), open_error=None, write_error=None):
        self.devices = list(devices)
        self.open_error = open_error
        self.write_error = write_error
        self.device = None
        self.lines = []
        self.on_line = None
        self.on_lost = None
        self.closed = 0

    def list_devices(self):
        return self.devices

    def open(self, device, on_line, on_lost=None):
        if self.open_error:
            raise self.open_error
        self.device = device
        self.on_line = on_line
        self.on_lost = on_lost

    def write_line(self, text):
        if self.write_error:
            raise self.write_error
        self.lines.append(text)

    def close(self):
        self.closed += 1
        self.device = None

