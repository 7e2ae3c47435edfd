from chartkeeper.script import user_credential


def init(self, root_user="root"):
    self.root = user_credential("mariadb-root", username=root_user)
