from faultline.env.env import Env as Env
from faultline.env.load_env import load_env as load_env
from faultline.env.time_parser import TimeParser as TimeParser
