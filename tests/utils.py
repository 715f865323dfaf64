from querytrace.backend import TracingBackend


class FakeRepo(object):
    def __init__(self, **config):
        self._config = config

    def config(self):
        return dict(self._config)


class FakeBackend(TracingBackend):
    """Records span requests together with the context active when they were submitted."""

    def __init__(self, now=5000000000, context=None):
        self.now = now
        self.context = context if context is not None else {}
        self.requests = []
        self.attached = []
        self.detached = []
        self.registered = 0

    def current_context(self):
        return self.context

    def attach(self, context):
        token = ("token", self.context)
        self.attached.append(context)
        self.context = context
        return token

    def detach(self, token):
        self.detached.append(token)
        self.context = token[1]

    def timestamp(self):
        return self.now

    def start_and_end_span(self, request):
        self.requests.append((request, self.context))

    def register_tracer(self):
        self.registered += 1
