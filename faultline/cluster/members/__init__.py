from faultline.cluster.members.member import Member as Member
from faultline.cluster.members.member_role import MemberRole as MemberRole
from faultline.cluster.members.member_state import MemberState as MemberState
