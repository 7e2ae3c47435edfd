from chartkeeper.script import K8sOptions


async def apply(self, k8s):
    await self.apply_local(k8s, glob="crd*", options=K8sOptions(wait=True))
    await self.apply_local(k8s, glob="deployment*")


async def delete(self, k8s):
    await self.delete_local(k8s, glob="deployment*")
    await self.delete_local(k8s, glob="crd*", ignore_not_found=True)


def scale(self, replicas):
    self.replicas = replicas
