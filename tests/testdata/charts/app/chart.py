from chartkeeper.script import chart, random_token


def init(self, replicas=None):
    if replicas is not None:
        self.replicas = replicas
    self.database = chart("../mariadb", values=self.database)
    self.token = random_token("app-token", length=16)
